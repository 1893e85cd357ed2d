"""Talks index: year-grouped talks with labelled links."""

from inkwell.talks.models import TalkEntry, TalkIndex, TalkSection
from inkwell.talks.parser import TalksParser

__all__ = [
    "TalkEntry",
    "TalkIndex",
    "TalkSection",
    "TalksParser",
]
