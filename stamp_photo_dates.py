#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Stamp EXIF capture dates onto JPEG and PNG photos.
"""

# local repo modules
import photo_date_stamp.cli


if __name__ == "__main__":
	photo_date_stamp.cli.main()
