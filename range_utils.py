#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Copyright 2025 Minorli
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
Small helpers for rejected-record numbers in SQL*Loader error reports.

    sort_ascending([5, 3, 4, 3, 1])   -> [1, 3, 3, 4, 5]
    compress_runs([1, 3, 3, 4, 5])    -> "1,3-5"
"""

from __future__ import annotations

from typing import List, Sequence


def sort_ascending(values: List[int]) -> List[int]:
    """Insertion sort in place; returns the same list for chaining."""
    for i in range(1, len(values)):
        j = i
        while j > 0 and values[j - 1] > values[j]:
            values[j - 1], values[j] = values[j], values[j - 1]
            j -= 1
    return values


def sort_descending(values: List[int]) -> List[int]:
    for i in range(1, len(values)):
        j = i
        while j > 0 and values[j - 1] < values[j]:
            values[j - 1], values[j] = values[j], values[j - 1]
            j -= 1
    return values


def _format_run(first: int, last: int) -> str:
    if first == last:
        return str(first)
    return f"{first}-{last}"


def compress_runs(values: Sequence[int]) -> str:
    """
    Collapse an ascending list of integers into range notation.

    Adjacent duplicates are dropped, consecutive runs become ``first-last``
    and isolated values stay bare:

        [2, 2, 3, 4, 5, 9, 10, 12] -> "2-5,9-10,12"
    """
    parts: List[str] = []
    first = None
    prev = None
    for value in values:
        if prev is not None:
            if value == prev:
                continue
            if value == prev + 1:
                prev = value
                continue
            parts.append(_format_run(first, prev))
        first = prev = value
    if first is not None:
        parts.append(_format_run(first, prev))
    return ",".join(parts)
