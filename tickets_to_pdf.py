#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Render tickets from SVG templates and impose them onto printable PDF pages.
"""

# local repo modules
import ticket_keepsake.cli


if __name__ == "__main__":
	ticket_keepsake.cli.main()
