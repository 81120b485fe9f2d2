"""fedtune: host-locked Fedora laptop tuning (fstab mount options + OS services)."""

__version__ = "0.1.0"
