"""
Global constants for the LTTP Randomizer Generator.
Contains path configuration, web service endpoints and network settings.
"""

import os

# **************************************************************** #
#                       Build Info                                     #
# **************************************************************** #
APP_VERSION = "0.1.0"

# **************************************************************** #
#                       Environment Detection                        #
# **************************************************************** #
DEV_MODE = os.getenv("DEV_MODE", "false").lower() == "true"

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))

# **************************************************************** #
#                       Path Configuration                           #
# **************************************************************** #
if DEV_MODE:
    TEMP_LOG_DIR = os.path.join(SCRIPT_DIR, "..", "workdir")
    CONFIG_FILE = os.path.join(SCRIPT_DIR, "..", "workdir", "config.json")
    CACHE_DIR = os.path.join(SCRIPT_DIR, "..", "workdir", "cache")
else:
    _data_home = os.getenv("LTTPR_HOME") or os.path.join(
        os.path.expanduser("~"), ".lttpr_generator"
    )
    TEMP_LOG_DIR = _data_home
    CONFIG_FILE = os.path.join(_data_home, "config.json")
    CACHE_DIR = os.path.join(_data_home, "cache")

os.makedirs(TEMP_LOG_DIR, exist_ok=True)
LOG_FILE = os.path.join(TEMP_LOG_DIR, "error.log")

# Sprite list, downloaded .zspr files and preview images
SPRITE_CACHE_DIR = os.path.join(CACHE_DIR, "sprites")

# **************************************************************** #
#                       Web Service                                  #
# **************************************************************** #
ALTTPR_BASE_URL = "https://alttpr.com"
USER_AGENT = f"LTTPRandomizerGenerator-Python/{APP_VERSION}"

# (connect, read) seconds
HTTP_TIMEOUT = (30, 60)
PREVIEW_TIMEOUT = 15

# **************************************************************** #
#                       Output                                       #
# **************************************************************** #
OUTPUT_FILENAME_TEMPLATE = "lttp_rand_{hash}.sfc"
ESDE_FOLDER_NAME = "lttpr"
