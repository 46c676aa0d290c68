"""
Key Suggester

Proposes join key candidates without calling a reasoning service.
Each column of each dataset is tried as an anchor; every other dataset
contributes its best-matching column, scored by:
- Name similarity (rapidfuzz ratio on normalized column names)
- Value overlap (shared normalized key values / smaller distinct set)

Output: JoinCandidate list ordered by confidence (highest first).
"""

import re
from typing import Any, Dict, List, Optional, Set, Tuple

from rapidfuzz import fuzz

from datalink.engine.indexer import UNJOINABLE, normalize_key
from datalink.models import ColumnMapping, Dataset, JoinCandidate
from datalink.utils.logging_utils import get_logger

logger = get_logger(__name__)

_NAME_NOISE = re.compile(r"[^a-z0-9]")


def normalize_column_name(name: str) -> str:
    """Lowercase and strip separators: 'Customer_ID' -> 'customerid'."""
    return _NAME_NOISE.sub("", name.lower())


class ColumnProfile:
    """Distinct key values and uniqueness of one column."""

    def __init__(self, dataset: Dataset, column: str):
        self.dataset_name = dataset.name
        self.column = column
        self.normalized_name = normalize_column_name(column)

        values = [normalize_key(row.get(column)) for row in dataset.rows]
        non_empty = [v for v in values if v != UNJOINABLE]
        self.values: Set[str] = set(non_empty)
        self.non_empty_count = len(non_empty)
        self.uniqueness = len(self.values) / len(non_empty) if non_empty else 0.0


class KeySuggester:
    """
    Rule-based join key discovery.

    Example:
        >>> suggester = KeySuggester()
        >>> candidates = suggester.suggest([customers, orders])
        >>> candidates[0].key_name
        'CustomerID'
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the Key Suggester.

        Args:
            config: Optional overrides for min_name_similarity,
                min_value_overlap and max_candidates
        """
        self.config = {
            'min_name_similarity': 0.8,
            'min_value_overlap': 0.3,
            'max_candidates': 5,
        }

        if config:
            self.config.update({k: v for k, v in config.items() if k in self.config})

    def suggest(self, datasets: List[Dataset]) -> List[JoinCandidate]:
        """
        Generate key candidates across all datasets.

        Args:
            datasets: Datasets to analyze (at least two)

        Returns:
            Candidates ordered by confidence, at most ``max_candidates``
        """
        if len(datasets) < 2:
            logger.warning("Need at least two datasets to suggest join keys")
            return []

        profiles = [
            [ColumnProfile(ds, col) for col in ds.columns]
            for ds in datasets
        ]

        candidates: List[JoinCandidate] = []
        seen: Set[Tuple[Tuple[str, str], ...]] = set()

        for anchor_idx, anchor_profiles in enumerate(profiles):
            for anchor in anchor_profiles:
                if anchor.non_empty_count == 0:
                    continue
                candidate = self._build_candidate(anchor, anchor_idx, profiles)
                if candidate is None:
                    continue
                signature = tuple(sorted((m.file_name, m.column_name) for m in candidate.column_mappings))
                if signature in seen:
                    continue
                seen.add(signature)
                candidates.append(candidate)

        candidates.sort(key=lambda c: c.confidence, reverse=True)
        candidates = candidates[:self.config['max_candidates']]

        logger.info(f"Suggested {len(candidates)} join key candidates")
        return candidates

    def _score(self, anchor: ColumnProfile, other: ColumnProfile) -> Tuple[float, float]:
        name_score = fuzz.ratio(anchor.normalized_name, other.normalized_name) / 100.0
        smaller = min(len(anchor.values), len(other.values))
        overlap = len(anchor.values & other.values) / smaller if smaller else 0.0
        return name_score, overlap

    def _build_candidate(
        self,
        anchor: ColumnProfile,
        anchor_idx: int,
        profiles: List[List[ColumnProfile]]
    ) -> Optional[JoinCandidate]:
        chosen: List[ColumnProfile] = []
        scores = []
        notes = []
        issues = []

        for idx, dataset_profiles in enumerate(profiles):
            if idx == anchor_idx:
                chosen.append(anchor)
                continue

            best = None
            for other in dataset_profiles:
                name_score, overlap = self._score(anchor, other)
                if (name_score < self.config['min_name_similarity']
                        and overlap < self.config['min_value_overlap']):
                    continue
                combined = (name_score + overlap) / 2
                if best is None or combined > best[0]:
                    best = (combined, other, name_score, overlap)

            if best is None:
                continue

            combined, other, name_score, overlap = best
            chosen.append(other)
            scores.append(combined)
            notes.append(
                f"'{other.column}' in {other.dataset_name} "
                f"(name similarity {name_score:.0%}, value overlap {overlap:.0%})"
            )
            if overlap < 0.5:
                issues.append(f"Low value overlap with {other.dataset_name}")

        if len(chosen) < 2:
            return None

        issues.extend(
            f"Possible duplicates in {p.dataset_name}" for p in chosen if p.uniqueness < 1.0
        )
        mappings = [ColumnMapping(file_name=p.dataset_name, column_name=p.column) for p in chosen]

        # Datasets that matched nothing lower confidence proportionally
        coverage = (len(chosen) - 1) / (len(profiles) - 1)
        confidence = round(100 * coverage * sum(scores) / len(scores), 1)

        return JoinCandidate(
            key_name=anchor.column,
            column_mappings=mappings,
            confidence=confidence,
            reasoning=f"'{anchor.column}' in {anchor.dataset_name} matches " + "; ".join(notes),
            issues=issues,
        )
