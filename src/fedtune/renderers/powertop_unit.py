"""powertop-autotune.service renderer."""

from typing import Optional

from jinja2 import Environment

from ._env import make_env

POWERTOP_BIN = "/usr/sbin/powertop"


def render(env: Optional[Environment] = None, powertop_bin: str = POWERTOP_BIN) -> str:
    if env is None:
        env = make_env()
    return env.get_template("powertop-autotune.service.j2").render(powertop_bin=powertop_bin)
