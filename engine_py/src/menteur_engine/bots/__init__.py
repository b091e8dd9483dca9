"""Automated players."""

from .base import BaseBot, BotAction
from .bluffer import BluffBot

__all__ = ["BaseBot", "BotAction", "BluffBot"]
