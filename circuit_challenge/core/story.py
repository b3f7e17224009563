"""
Story mode: ten chapters of five levels each.

Every chapter fixes the operations and number ranges; the grid grows from
the chapter's start size towards its end size over levels 1-4, and level 5
is always played at the end size in hidden mode.
"""

import math
import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List

from .expression import Operation
from .difficulty import (DifficultySettings, OperationWeights,
                         calculate_min_path_length, calculate_max_path_length)

LEVELS_PER_CHAPTER = 5
LEVEL_LETTERS = "ABCDE"


@dataclass(frozen=True)
class ChapterConfig:
    """Operations, ranges and grid growth for one chapter"""
    operations: FrozenSet[Operation]
    add_sub_max: int
    mult_div_max: int
    start_rows: int
    start_cols: int
    end_rows: int
    end_cols: int
    all_hidden: bool = False


_ADD = frozenset({Operation.ADDITION})
_ADD_SUB = frozenset({Operation.ADDITION, Operation.SUBTRACTION})
_ADD_SUB_MUL = _ADD_SUB | {Operation.MULTIPLICATION}
_ALL = frozenset(Operation)

CHAPTERS: Dict[int, ChapterConfig] = {
    1: ChapterConfig(_ADD, 10, 0, 3, 4, 6, 7),
    2: ChapterConfig(_ADD_SUB, 15, 0, 4, 5, 6, 7),
    3: ChapterConfig(_ADD_SUB, 20, 0, 4, 5, 6, 7),
    4: ChapterConfig(_ADD_SUB, 35, 0, 4, 5, 6, 7),
    5: ChapterConfig(_ADD_SUB_MUL, 20, 20, 4, 5, 6, 7),
    6: ChapterConfig(_ADD_SUB_MUL, 30, 50, 4, 5, 6, 7),
    7: ChapterConfig(_ADD_SUB_MUL, 40, 100, 4, 5, 6, 7),
    8: ChapterConfig(_ALL, 50, 100, 4, 5, 6, 7),
    9: ChapterConfig(_ALL, 100, 144, 6, 7, 6, 7),
    10: ChapterConfig(_ALL, 100, 144, 8, 9, 8, 9, all_hidden=True),
}

_LABEL_PATTERN = re.compile(r'^\s*(\d+)\s*-\s*([A-Ea-e])\s*$')


@dataclass(frozen=True, order=True)
class StoryLevel:
    """A chapter (1-10) and level (1-5) pair"""
    chapter: int
    level: int

    @property
    def label(self) -> str:
        return f"{self.chapter}-{LEVEL_LETTERS[self.level - 1]}"

    @classmethod
    def from_label(cls, label: str) -> 'StoryLevel':
        """Parse a label such as "3-B" """
        match = _LABEL_PATTERN.match(label)
        if not match:
            raise ValueError(f"Invalid story level label: {label!r}")
        chapter = int(match.group(1))
        if chapter not in CHAPTERS:
            raise ValueError(f"Unknown story chapter: {chapter}")
        return cls(chapter, LEVEL_LETTERS.index(match.group(2).upper()) + 1)


def all_story_levels() -> List[StoryLevel]:
    """Every chapter/level pair in play order"""
    return [StoryLevel(chapter, level)
            for chapter in sorted(CHAPTERS)
            for level in range(1, LEVELS_PER_CHAPTER + 1)]


def story_grid_size(chapter: ChapterConfig, level: int):
    """Grid (rows, cols) for a level within a chapter"""
    if level == LEVELS_PER_CHAPTER:
        return chapter.end_rows, chapter.end_cols

    if (chapter.start_rows, chapter.start_cols) == (chapter.end_rows, chapter.end_cols):
        return chapter.start_rows, chapter.start_cols

    row_growth = chapter.end_rows - chapter.start_rows
    col_growth = chapter.end_cols - chapter.start_cols
    growth_steps = (level - 1) * ((row_growth + col_growth) // 4)

    rows, cols = chapter.start_rows, chapter.start_cols
    for i in range(growth_steps):
        # Alternate rows and columns, never past the end size
        if i % 2 == 0 and rows < chapter.end_rows:
            rows += 1
        elif cols < chapter.end_cols:
            cols += 1
        elif rows < chapter.end_rows:
            rows += 1
    return rows, cols


def story_settings(story_level: StoryLevel) -> DifficultySettings:
    """
    Difficulty settings for a story level.

    Unknown chapters give the settings for 1-A; otherwise the level is
    clamped to 1-5.
    """
    if story_level.chapter not in CHAPTERS:
        story_level = StoryLevel(1, 1)
    chapter = CHAPTERS[story_level.chapter]
    chapter_number = story_level.chapter
    level = max(1, min(LEVELS_PER_CHAPTER, story_level.level))

    rows, cols = story_grid_size(chapter, level)
    weight = 100 // len(chapter.operations)

    def weight_for(operation):
        return weight if operation in chapter.operations else 0

    return DifficultySettings(
        name=f"Story {chapter_number}-{LEVEL_LETTERS[level - 1]}",
        addition_enabled=Operation.ADDITION in chapter.operations,
        subtraction_enabled=Operation.SUBTRACTION in chapter.operations,
        multiplication_enabled=Operation.MULTIPLICATION in chapter.operations,
        division_enabled=Operation.DIVISION in chapter.operations,
        add_sub_range=chapter.add_sub_max,
        mult_div_range=int(math.sqrt(chapter.mult_div_max)) if chapter.mult_div_max > 0 else 0,
        connector_min=5,
        connector_max=max(chapter.add_sub_max, chapter.mult_div_max),
        grid_rows=rows,
        grid_cols=cols,
        min_path_length=calculate_min_path_length(rows, cols),
        max_path_length=calculate_max_path_length(rows, cols),
        weights=OperationWeights(
            addition=weight_for(Operation.ADDITION),
            subtraction=weight_for(Operation.SUBTRACTION),
            multiplication=weight_for(Operation.MULTIPLICATION),
            division=weight_for(Operation.DIVISION)
        ),
        hidden_mode=chapter.all_hidden or level == LEVELS_PER_CHAPTER,
        seconds_per_step=5
    )
