"""
Renderers turn fedtune data into files: the powertop systemd unit and the
Markdown run summary.  Templates live in fedtune/templates.
"""

from ._env import TEMPLATES_DIR, make_env
from .powertop_unit import render as render_powertop_unit
from .summary import render as render_summary

__all__ = ["make_env", "render_powertop_unit", "render_summary", "TEMPLATES_DIR"]
