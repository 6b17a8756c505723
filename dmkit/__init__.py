"""
dmkit, a tabletop RPG session aid.

This package contains the combat turn engine together with the character
sheet loader, the dice roller and the terminal interface built around it.
"""
