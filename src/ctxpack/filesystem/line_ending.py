"""Line-ending detection and normalization."""

from enum import Enum


class LineEnding(str, Enum):
    CRLF = "\r\n"
    LF = "\n"
    CR = "\r"


class LineEndingNormalizer:
    """Detects a file's line-ending convention and converts text to it."""

    def detect(self, content: str) -> LineEnding:
        """Return the first line ending found, LF when there is none."""
        for index, char in enumerate(content):
            if char == "\r":
                if content[index + 1 : index + 2] == "\n":
                    return LineEnding.CRLF
                return LineEnding.CR
            if char == "\n":
                return LineEnding.LF
        return LineEnding.LF

    def normalize(self, content: str, ending: LineEnding) -> str:
        unified = content.replace("\r\n", "\n").replace("\r", "\n")
        if ending is LineEnding.LF:
            return unified
        return unified.replace("\n", ending.value)

    def split(self, content: str, ending: LineEnding) -> tuple[list[str], bool]:
        """Split content into lines.

        Returns:
            The lines and whether the content ended with a line ending
        """
        if content == "":
            return [], False
        trailing = content.endswith(ending.value)
        if trailing:
            content = content[: -len(ending.value)]
        return content.split(ending.value), trailing

    def join(self, lines: list[str], ending: LineEnding, trailing: bool) -> str:
        text = ending.value.join(lines)
        if trailing and lines:
            text += ending.value
        return text
