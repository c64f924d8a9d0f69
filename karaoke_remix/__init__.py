"""
karaoke-remix - themed lyric rewriting for karaoke

Fetches original song lyrics from a configurable provider, caches them
in memory, and asks a chat-completion model to rewrite them around a theme
while preserving rhythm and rhyme.
"""

__version__ = "0.1.0"
__author__ = "karaoke-remix contributors"
