"""
User interface module for dmkit.

This module provides the command-line interface: rich rendering of the roster
and combatants, and the prompt_toolkit command loop.
"""
