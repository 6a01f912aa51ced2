"""Interaction package utilities."""

from interaction.console_presenter import ConsolePresenter

__all__ = ["ConsolePresenter"]
