"""Helpers shared by the command groups"""

import typer

from ..core.config import load_settings
from ..core.system import Host


def get_host(ctx: typer.Context) -> Host:
    """Host prepared by the root callback (or a default one)"""
    if ctx.obj is None:
        ctx.obj = Host(settings=load_settings())
    return ctx.obj


def confirm_or_yes(yes: bool):
    """Confirmation callback for provisioners; None means 'do not ask'"""
    if yes:
        return None
    return lambda question: typer.confirm(question, default=False)
