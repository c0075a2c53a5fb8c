"""Polyglot content core: translations, exercises, lesson ordering and visibility."""
