"""
Chemical Safety Filter

Screens chemical recommendations against the CIBRC 2025 banned and
restricted pesticide lists (Central Insecticides Board & Registration
Committee, India).

Matching:
- Case-insensitive substring match in both directions
  (registry name inside the input, or input inside the registry name)
- Globally banned substances are prohibited outright: flagged restricted
  with no protective-equipment list
- Substances banned only for the crop's category (vegetables) are flagged
  restricted and carry the mandatory protective-equipment checklist

Data Sources:
- Default registry built from the CIBRC 2025 lists below
- Optional JSON override, see BannedSubstanceRegistry.load()
"""

import json
import logging
import string
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from leafcare.models.enums import CropCategory

logger = logging.getLogger(__name__)

PROTECTIVE_EQUIPMENT = (
    "Full body protective suit",
    "N95 or higher grade respirator mask",
    "Chemical-resistant gloves",
    "Safety goggles or face shield",
    "Rubber boots",
    "Head protection",
)

HAZARD_KEYWORDS = ("fungicide", "pesticide", "insecticide", "herbicide")

# Crop names that place a free-text crop category under the vegetable rules
VEGETABLE_MARKERS = ("vegetable", "tomato", "potato", "brinjal", "chilli", "okra")

# Leading verbs that precede a product name in recommendation text
_ACTION_WORDS = frozenset({"Spray", "Apply", "Use", "Drench", "Dust", "Treat", "With"})


@dataclass(frozen=True)
class SafetyWarning:
    """
    Safety verdict for one substance.

    Attributes:
        is_restricted: Substance is banned globally or for the crop category
        warning_message: Grower-facing explanation when restricted
        mandatory_gear: Protective equipment required to handle it; None when
            the substance is prohibited outright or not restricted
        substance: Name that was checked
    """
    is_restricted: bool
    warning_message: Optional[str] = None
    mandatory_gear: Optional[tuple[str, ...]] = None
    substance: Optional[str] = None

    @property
    def is_prohibited(self) -> bool:
        return self.is_restricted and self.mandatory_gear is None


@dataclass(frozen=True)
class SubstanceEntry:
    """Registry record: a substance and where it is banned."""
    name: str
    banned_globally: bool = False
    banned_for: frozenset[str] = field(default_factory=frozenset)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "banned_globally": self.banned_globally,
            "banned_for": sorted(self.banned_for),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SubstanceEntry":
        return cls(
            name=str(data["name"]),
            banned_globally=bool(data.get("banned_globally", False)),
            banned_for=frozenset(str(c).lower() for c in data.get("banned_for", [])),
        )


_VEG = frozenset({CropCategory.VEGETABLE.value})

DEFAULT_SUBSTANCES: tuple[SubstanceEntry, ...] = (
    SubstanceEntry("Monocrotophos", banned_globally=True, banned_for=_VEG),
    SubstanceEntry("Endosulfan", banned_globally=True),
    SubstanceEntry("Carbofuran", banned_globally=True),
    SubstanceEntry("Phosphamidon", banned_globally=True),
    SubstanceEntry("Methyl Parathion", banned_globally=True),
    SubstanceEntry("Ethyl Parathion", banned_globally=True),
    SubstanceEntry("Phorate", banned_for=_VEG),
    SubstanceEntry("Triazophos", banned_for=_VEG),
    SubstanceEntry("Methomyl", banned_for=_VEG),
    SubstanceEntry("Dichlorvos", banned_for=_VEG),
    SubstanceEntry("Chlorpyrifos", banned_for=_VEG),
    SubstanceEntry("Acephate", banned_for=_VEG),
    SubstanceEntry("Fenitrothion", banned_for=_VEG),
    SubstanceEntry("Quinalphos", banned_for=_VEG),
    SubstanceEntry("Aluminium Phosphide", banned_for=_VEG),
    SubstanceEntry("Zinc Phosphide", banned_for=_VEG),
)


class BannedSubstanceRegistry:
    """
    Read-only registry of banned and restricted substances.

    Usage:
        registry = BannedSubstanceRegistry.default()
        registry.save("registry.json")
        same = BannedSubstanceRegistry.load("registry.json")
    """

    def __init__(self, entries: Iterable[SubstanceEntry], source: str = "CIBRC 2025"):
        self._entries: tuple[SubstanceEntry, ...] = tuple(entries)
        self.source = source

    @classmethod
    def default(cls) -> "BannedSubstanceRegistry":
        return cls(DEFAULT_SUBSTANCES)

    @property
    def entries(self) -> tuple[SubstanceEntry, ...]:
        return self._entries

    def names(self) -> list[str]:
        return [entry.name for entry in self._entries]

    def globally_banned(self) -> list[str]:
        return [e.name for e in self._entries if e.banned_globally]

    def banned_for(self, category: str) -> list[str]:
        return [e.name for e in self._entries if category in e.banned_for]

    # === Serialization ===

    def to_dict(self) -> dict[str, Any]:
        return {
            "_metadata": {"source": self.source},
            "substances": [entry.to_dict() for entry in self._entries],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BannedSubstanceRegistry":
        metadata = data.get("_metadata", {})
        entries = [SubstanceEntry.from_dict(item) for item in data.get("substances", [])]
        return cls(entries, source=metadata.get("source", "Unknown"))

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str) -> "BannedSubstanceRegistry":
        return cls.from_dict(json.loads(text))

    def save(self, path: Union[str, Path]) -> None:
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.to_json())

    @classmethod
    def load(cls, path: Union[str, Path]) -> "BannedSubstanceRegistry":
        """
        Load a registry from a JSON file.

        Raises:
            OSError: If the file cannot be read
            ValueError: If the file is not a valid registry document
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        try:
            registry = cls.from_dict(data)
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Invalid substance registry in {path}: {e}") from e
        logger.info(f"Loaded substance registry: {len(registry.entries)} entries from {path}")
        return registry


def normalize_category(crop_category: Union[CropCategory, str, None]) -> str:
    """Reduce a category or crop name to a registry category key."""
    if crop_category is None:
        return CropCategory.VEGETABLE.value
    value = getattr(crop_category, "value", crop_category)
    value = str(value).strip().lower()
    if any(marker in value for marker in VEGETABLE_MARKERS):
        return CropCategory.VEGETABLE.value
    return value


def _matches(name: str, registry_name: str) -> bool:
    registry_name = registry_name.lower()
    return registry_name in name or name in registry_name


class SafetyFilter:
    """
    Regulatory screen for chemical recommendations.

    Usage:
        safety = SafetyFilter()
        warning = safety.check("Monocrotophos 36% SL", "tomato")
        warning.is_restricted  # True
    """

    def __init__(self, registry: Optional[BannedSubstanceRegistry] = None):
        self.registry = registry or BannedSubstanceRegistry.default()

    def check(
        self,
        substance_name: str,
        crop_category: Union[CropCategory, str] = CropCategory.VEGETABLE
    ) -> SafetyWarning:
        """
        Check one substance for the given crop category.

        Args:
            substance_name: Product or active ingredient name, any case
            crop_category: Category ("vegetable", "fruit", ...) or crop name

        Returns:
            SafetyWarning; not restricted for unknown substances
        """
        name = (substance_name or "").strip().lower()
        if not name:
            return SafetyWarning(is_restricted=False, substance=substance_name)

        category = normalize_category(crop_category)
        is_banned = any(_matches(name, banned) for banned in self.registry.globally_banned())
        is_banned_for_crop = any(
            _matches(name, banned) for banned in self.registry.banned_for(category)
        )

        if not (is_banned or is_banned_for_crop):
            return SafetyWarning(is_restricted=False, substance=substance_name)

        display_category = getattr(crop_category, "value", crop_category)
        if is_banned_for_crop:
            message = (
                "⚠️ BANNED CHEMICAL DETECTED!\n\n"
                f"This chemical ({substance_name}) is BANNED for {display_category} crops "
                f"as per {self.registry.source} guidelines. "
                "Please use safe alternatives recommended by agricultural experts."
            )
        else:
            message = (
                "⚠️ BANNED CHEMICAL DETECTED!\n\n"
                f"This chemical ({substance_name}) is BANNED as per {self.registry.source} "
                "guidelines. It is prohibited for use in agriculture. Please use safe alternatives."
            )

        logger.info(f"Restricted substance flagged: {substance_name} ({category})")
        return SafetyWarning(
            is_restricted=True,
            warning_message=message,
            mandatory_gear=None if is_banned else PROTECTIVE_EQUIPMENT,
            substance=substance_name,
        )

    def extract_substances(self, recommendations: Any) -> list[str]:
        """
        Pull candidate substance names out of free-text recommendations.

        Best-effort text mining: finds registry names, and the capitalized
        words just before a hazard keyword ("... Mancozeb fungicide ...").
        Malformed input yields an empty list.
        """
        if recommendations is None:
            return []
        if isinstance(recommendations, str):
            recommendations = [recommendations]

        found: list[str] = []
        try:
            texts = list(recommendations)
        except TypeError:
            return []

        registry_names = self.registry.names()
        for text in texts:
            if not isinstance(text, str):
                continue
            lower = text.lower()

            for name in registry_names:
                if name.lower() in lower:
                    found.append(name)

            for keyword in HAZARD_KEYWORDS:
                index = lower.find(keyword)
                if index <= 0:
                    continue
                for word in text[:index].split()[-2:]:
                    word = word.strip(string.punctuation)
                    if len(word) > 3 and word[0].isupper() and word not in _ACTION_WORDS:
                        found.append(word)

        return list(dict.fromkeys(found))

    def filter_recommendations(
        self,
        chemical: Iterable[str],
        crop_category: Union[CropCategory, str]
    ) -> tuple[list[str], list[SafetyWarning]]:
        """
        Screen a chemical recommendation list.

        Entries naming a prohibited substance are redacted. Entries naming a
        category-restricted substance are kept, and a warning with the
        protective-equipment list is returned for them.

        Returns:
            (kept entries in original order, warnings de-duplicated by substance)
        """
        kept: list[str] = []
        warnings: dict[str, SafetyWarning] = {}

        for entry in chemical:
            entry_warnings = [
                warning
                for warning in (self.check(s, crop_category) for s in self.extract_substances(entry))
                if warning.is_restricted
            ]
            for warning in entry_warnings:
                warnings.setdefault(warning.substance.lower(), warning)

            if any(w.is_prohibited for w in entry_warnings):
                logger.warning(f"Redacted prohibited recommendation: {entry}")
                continue
            kept.append(entry)

        return kept, list(warnings.values())
