# app/utils.py
"""Shared logging setup.

Every module logs through the single `logger` defined here so that the level
and format are controlled by LOG_LEVEL in one place.
"""
import os
import logging
from dotenv import load_dotenv

load_dotenv()

def get_logger(name=__name__):
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        level=getattr(logging, level, logging.INFO)
    )
    return logging.getLogger(name)

logger = get_logger("teamfinder")
