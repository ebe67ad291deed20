# setup/config_models.py
# -*- coding: utf-8 -*-
"""
Pydantic models for application configuration.

This module defines the structured settings for the workstation setup,
including the package catalogs, pinned tool versions, download sources and
filesystem locations. Every model is frozen: the settings object is built
once at start-up and handed to the step catalog unchanged.
"""

from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

SYMBOLS_DEFAULT: Dict[str, str] = {
    "success": "✅",
    "error": "❌",
    "warning": "⚠️",
    "info": "ℹ️",
    "step": "➡️",
    "gear": "⚙️",
    "package": "📦",
    "rocket": "🚀",
    "sparkles": "✨",
    "critical": "🔥",
    "debug": "🐛",
}

# --- Package catalogs (can be overridden by config file/env) ---
CATALOGS_DEFAULT: Dict[str, Tuple[str, ...]] = {
    "system": (
        "apt-transport-https",
        "ca-certificates",
        "curl",
        "gnupg",
        "lsb-release",
        "software-properties-common",
        "libfuse2",  # AppImage support, JetBrains Toolbox
        "wget",
    ),
    "dev": (
        "build-essential",
        "git",
        "python3",
        "python3-pip",
        "libreadline-dev",
    ),
    "util": (
        "htop",
        "tmux",
        "tree",
        "unzip",
        "fish",
    ),
    "neovim": (
        "make",
        "gcc",
        "ripgrep",
        "unzip",
        "git",
        "xclip",
        "neovim",
        "fonts-noto-color-emoji",
    ),
    "lua_build": (
        "build-essential",
        "libreadline-dev",
    ),
    "kvm": (
        "qemu-kvm",
        "libvirt-daemon-system",
        "libvirt-clients",
        "bridge-utils",
        "virt-manager",
    ),
    "vscode_prereqs": (
        "wget",
        "gpg",
        "apt-transport-https",
    ),
    "pyenv_build": (
        "build-essential",
        "libssl-dev",
        "zlib1g-dev",
        "libbz2-dev",
        "libreadline-dev",
        "libsqlite3-dev",
        "curl",
        "git",
        "libncursesw5-dev",
        "xz-utils",
        "tk-dev",
        "libxml2-dev",
        "libxmlsec1-dev",
        "libffi-dev",
        "liblzma-dev",
    ),
    "flatpak": (
        "flatpak",
        "gnome-software-plugin-flatpak",
    ),
    "flatpak_apps": (
        "info.smplayer.SMPlayer",
        "com.discordapp.Discord",
        "com.slack.Slack",
        "org.telegram.desktop",
        "com.github.tchx84.Flatseal",
        "org.gimp.GIMP",
        "it.mijorus.gearlever",
        "org.duckstation.DuckStation",
        "org.DolphinEmu.dolphin-emu",
        "net.pcsx2.PCSX2",
        "io.github.mhogomchungu.media-downloader",
    ),
    "snap_apps": (),
    "docker": (
        "docker-ce",
        "docker-ce-cli",
        "containerd.io",
        "docker-buildx-plugin",
        "docker-compose-plugin",
    ),
    "docker_conflicts": (
        "docker.io",
        "docker-doc",
        "docker-compose",
        "docker-compose-v2",
        "podman-docker",
        "containerd",
        "runc",
    ),
    "podman_build": (
        "make",
        "git",
        "gcc",
        "build-essential",
        "pkgconf",
        "libtool",
        "libsystemd-dev",
        "libprotobuf-c-dev",
        "libcap-dev",
        "libseccomp-dev",
        "libyajl-dev",
        "go-md2man",
        "autoconf",
        "python3",
        "automake",
        "golang",
        "libgpgme-dev",
        "man",
        "conmon",
        "passt",
        "uidmap",
        "netavark",
    ),
    "steam_core": (
        "libc6:amd64",
        "libc6:i386",
        "libegl1:amd64",
        "libegl1:i386",
        "libgbm1:amd64",
        "libgbm1:i386",
        "libgl1-mesa-dri:amd64",
        "libgl1-mesa-dri:i386",
        "libgl1:amd64",
        "libgl1:i386",
    ),
    "steam_video": (
        "i965-va-driver",
        "i965-va-driver:i386",
        "intel-media-va-driver",
        "intel-media-va-driver:i386",
        "libigdgmm12",
        "libigdgmm12:i386",
        "libva-drm2:i386",
        "libva-glx2",
        "libva-glx2:i386",
        "libva-x11-2:i386",
        "libva2:i386",
        "libvdpau1:i386",
        "mesa-va-drivers",
        "mesa-va-drivers:i386",
        "mesa-vdpau-drivers:i386",
        "va-driver-all",
        "va-driver-all:i386",
        "vdpau-driver-all:i386",
        "ocl-icd-libopencl1:i386",
    ),
    "steam_audio": (
        "libasound2-plugins",
        "libasound2-plugins:i386",
        "libasound2t64:i386",
        "libasyncns0:i386",
        "libflac14:i386",
        "libjack-jackd2-0:i386",
        "libmpg123-0t64:i386",
        "libogg0:i386",
        "libpulse0:i386",
        "libsamplerate0:i386",
        "libsndfile1:i386",
        "libsoxr0:i386",
        "libspeex1:i386",
        "libspeexdsp1:i386",
        "libvorbis0a:i386",
        "libvorbisenc2:i386",
    ),
    "steam_codec": (
        "libaom3:i386",
        "libavcodec61:i386",
        "libavutil59:i386",
        "libcodec2-1.2:i386",
        "libdav1d7:i386",
        "libgsm1:i386",
        "libmp3lame0:i386",
        "libopus0:i386",
        "libshine3:i386",
        "libsharpyuv0:i386",
        "libsnappy1v5:i386",
        "libsvtav1enc2:i386",
        "libswresample5:i386",
        "libtheoradec1:i386",
        "libtheoraenc1:i386",
        "libtwolame0:i386",
        "libvpx9:i386",
        "libwebp7:i386",
        "libwebpmux3:i386",
        "libx264-164:i386",
        "libx265-215:i386",
        "libxvidcore4:i386",
        "libzvbi0t64:i386",
    ),
    "steam_graphics": (
        "libcairo-gobject2:i386",
        "libcairo2:i386",
        "libfontconfig1:i386",
        "libfreetype6:i386",
        "libgdk-pixbuf-2.0-0:i386",
        "libharfbuzz0b:i386",
        "libjbig0:i386",
        "libjpeg-turbo8:i386",
        "libjpeg8:i386",
        "libopenjp2-7:i386",
        "libpango-1.0-0:i386",
        "libpangocairo-1.0-0:i386",
        "libpangoft2-1.0-0:i386",
        "libpixman-1-0:i386",
        "libpng16-16t64:i386",
        "librsvg2-2:i386",
        "librsvg2-common:i386",
        "libtiff6:i386",
        "libxcb-render0:i386",
        "libxrender1:i386",
    ),
    "steam_system": (
        "libapparmor1:i386",
        "libblkid1:i386",
        "libbrotli1:i386",
        "libbz2-1.0:i386",
        "libcap2:i386",
        "libcrypt1:i386",
        "libdatrie1:i386",
        "libdb5.3t64:i386",
        "libdbus-1-3:i386",
        "libdeflate0:i386",
        "libfribidi0:i386",
        "libglib2.0-0t64:i386",
        "libgmp10:i386",
        "libgnutls30t64:i386",
        "libgomp1:i386",
        "libgpg-error0:i386",
        "libgraphite2-3:i386",
        "libhogweed6t64:i386",
        "libmount1:i386",
        "libnettle8t64:i386",
        "libnm0:i386",
        "libnuma1:i386",
        "libp11-kit0:i386",
        "libpcre2-8-0:i386",
        "libselinux1:i386",
        "libsystemd0:i386",
        "libtasn1-6:i386",
        "libthai0:i386",
        "libudev1:i386",
        "libxcb-xkb1:i386",
        "libxfixes3:i386",
        "libxinerama1:i386",
        "libxkbcommon-x11-0:i386",
        "libxkbcommon0:i386",
        "libxss1:i386",
    ),
}

STEAM_DEPENDENCY_GROUPS: Tuple[str, ...] = (
    "steam_core",
    "steam_video",
    "steam_audio",
    "steam_codec",
    "steam_graphics",
    "steam_system",
)


class LockSettings(BaseModel):
    """Package-manager lock polling settings."""

    model_config = ConfigDict(frozen=True)

    max_wait_seconds: int = Field(default=300, ge=0, description="Give up waiting for apt/dpkg after this many seconds.")
    poll_interval_seconds: int = Field(default=10, gt=0, description="Seconds between lock checks.")
    processes: Tuple[str, ...] = Field(
        default=("apt", "apt-get", "dpkg", "unattended-upgrade"),
        description="Process names (exact match) that indicate the package manager is busy.",
    )
    lock_files: Tuple[str, ...] = Field(
        default=("/var/lib/dpkg/lock-frontend", "/var/lib/dpkg/lock"),
        description="Lock files checked for open file descriptors.",
    )


class VersionSettings(BaseModel):
    """Pinned versions for tools built from source."""

    model_config = ConfigDict(frozen=True)

    podman: str = Field(default="v5.4.2", description="Podman git tag.")
    crun: str = Field(default="1.21", description="crun git tag.")
    lua: str = Field(default="5.4.7", description="Lua release.")
    luarocks: str = Field(default="3.11.1", description="LuaRocks release.")


class SourceSettings(BaseModel):
    """Download locations, repositories and installer scripts."""

    model_config = ConfigDict(frozen=True)

    docker_key_url: str = "https://download.docker.com/linux/ubuntu/gpg"
    docker_repo_url: str = "https://download.docker.com/linux/ubuntu"
    vscode_key_url: str = "https://packages.microsoft.com/keys/microsoft.asc"
    vscode_repo_url: str = "https://packages.microsoft.com/repos/code"
    neovim_ppa: str = "ppa:neovim-ppa/unstable"
    kickstart_nvim_repo: str = "https://github.com/nvim-lua/kickstart.nvim.git"
    lua_tarball_url: str = "https://www.lua.org/ftp/lua-{version}.tar.gz"
    luarocks_tarball_url: str = "https://luarocks.github.io/luarocks/releases/luarocks-{version}.tar.gz"
    jetbrains_releases_url: str = "https://data.services.jetbrains.com/products/releases?code=TBA&latest=true&type=release"
    chrome_beta_deb_url: str = "https://dl.google.com/linux/direct/google-chrome-beta_current_amd64.deb"
    steam_deb_url: str = "https://cdn.fastly.steamstatic.com/client/installer/steam.deb"
    onepassword_deb_url: str = "https://downloads.1password.com/linux/debian/amd64/stable/1password-latest.deb"
    flathub_repo_url: str = "https://flathub.org/repo/flathub.flatpakrepo"
    podman_git_url: str = "https://github.com/containers/podman.git"
    crun_git_url: str = "https://github.com/containers/crun.git"
    pyenv_installer_url: str = "https://pyenv.run"
    mise_installer_url: str = "https://mise.run"
    unqualified_search_registries: Tuple[str, ...] = ("docker.io", "quay.io")
    download_timeout_seconds: int = Field(default=300, gt=0)


class PathSettings(BaseModel):
    """System locations touched by the setup steps."""

    model_config = ConfigDict(frozen=True)

    apt_sources_dir: str = "/etc/apt/sources.list.d"
    apt_keyrings_dir: str = "/etc/apt/keyrings"
    containers_dir: str = "/etc/containers"
    registries_conf: str = "/etc/containers/registries.conf"
    apparmor_podman_profile: str = "/etc/apparmor.d/podman"
    podman_userns_sysctl: str = "/etc/sysctl.d/99-podman-userns.conf"
    os_release: str = "/etc/os-release"
    build_dir: str = Field(default="/tmp", description="Scratch directory for downloads and source builds.")


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="WORKSTATION_",
        env_nested_delimiter="__",
        extra="ignore",
        frozen=True,
    )

    auto_mode: bool = Field(default=False, description="Suppress interactive prompts and auto-confirm the final reboot.")
    restart_enabled: bool = Field(default=True, description="Offer (or in auto mode perform) a reboot at the end of the run.")
    restart_delay_seconds: int = Field(default=10, ge=0, description="Grace period before rebooting.")
    target_user: str = Field(default="", description="Override the detected invoking user.")

    catalogs: Dict[str, Tuple[str, ...]] = Field(
        default_factory=lambda: dict(CATALOGS_DEFAULT),
        description="Named package catalogs: {catalog_name: identifiers}.",
    )
    lock: LockSettings = Field(default_factory=LockSettings)
    versions: VersionSettings = Field(default_factory=VersionSettings)
    sources: SourceSettings = Field(default_factory=SourceSettings)
    paths: PathSettings = Field(default_factory=PathSettings)

    symbols: Dict[str, str] = Field(default_factory=lambda: dict(SYMBOLS_DEFAULT))

    def catalog(self, name: str) -> Tuple[str, ...]:
        """Return the identifiers of a named catalog (empty if undefined)."""
        return tuple(self.catalogs.get(name, ()))
