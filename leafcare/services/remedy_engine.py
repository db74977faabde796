"""
Remedy Rule Engine

Maps a decoded disease label and crop to three recommendation groups:
- Chemical: registered fungicides / insecticides with dose
- Organic: bio-inputs and botanical sprays
- Traditional: field practices

Rules:
- Any label containing "healthy" (any case) gets the maintenance set,
  which carries no chemical entries.
- Otherwise the crop's rule function matches keywords in the label
  ("blight", "scab", "mosaic", ...). A label no rule recognises gets the
  generic advice set, never empty lists.

The rule tables are static and built once; recommendation order is the
display order.

Iteration Point: Add a crop by adding a CropType member and a rule method
registered in RemedyRuleEngine.__init__.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from leafcare.models.enums import CropType

logger = logging.getLogger(__name__)

GENERIC_ADVICE = "Consult expert for approved treatment"


@dataclass(frozen=True)
class RemedyRecommendations:
    """Categorized recommendations, each group in display order."""
    chemical: tuple[str, ...] = field(default_factory=tuple)
    organic: tuple[str, ...] = field(default_factory=tuple)
    traditional: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def of(
        cls,
        chemical: Sequence[str] = (),
        organic: Sequence[str] = (),
        traditional: Sequence[str] = ()
    ) -> "RemedyRecommendations":
        return cls(tuple(chemical), tuple(organic), tuple(traditional))

    def is_empty(self) -> bool:
        return not (self.chemical or self.organic or self.traditional)


HEALTHY_REMEDIES = RemedyRecommendations.of(
    chemical=[],
    organic=[
        "Apply well-decomposed farmyard manure or vermicompost each season",
        "Spray neem oil (5 ml/L) every 15 days as a preventive measure",
    ],
    traditional=[
        "Water early in the morning at the base of the plant",
        "Remove weeds and fallen leaves regularly",
        "Rotate crops each season to keep the soil healthy",
    ],
)

GENERIC_REMEDIES = RemedyRecommendations.of(
    chemical=[GENERIC_ADVICE],
    organic=[
        "Remove and destroy affected leaves",
        "Spray neem oil (5 ml/L) on affected plants",
    ],
    traditional=[
        "Isolate affected plants to prevent spread",
        "Take a sample to the nearest Krishi Vigyan Kendra for identification",
    ],
)

RuleFunction = Callable[[str], Optional[RemedyRecommendations]]


def _contains(label: str, *keywords: str) -> bool:
    return any(keyword in label for keyword in keywords)


class RemedyRuleEngine:
    """
    Deterministic (disease, crop) -> remedies mapping.

    Usage:
        engine = RemedyRuleEngine()
        remedies = engine.generate("Early Blight", CropType.TOMATO)
        remedies.chemical  # ("Spray Mancozeb fungicide ...", ...)
    """

    HEALTHY_MARKER = "healthy"

    def __init__(self):
        self._rules: dict[CropType, RuleFunction] = {
            CropType.APPLE: self._apple_rules,
            CropType.TOMATO: self._tomato_rules,
            CropType.POTATO: self._potato_rules,
            CropType.MANGO: self._mango_rules,
            CropType.GUAVA: self._guava_rules,
            CropType.COTTON: self._cotton_rules,
        }
        missing = set(CropType) - set(self._rules)
        if missing:
            raise RuntimeError(f"No remedy rules for crops: {sorted(c.value for c in missing)}")

    def generate(self, disease_label: str, crop: CropType) -> RemedyRecommendations:
        """
        Build recommendations for a diagnosed disease.

        Args:
            disease_label: Decoded disease name, e.g. "Late Blight"
            crop: Crop the model was run for

        Returns:
            RemedyRecommendations with all three groups present
        """
        label = (disease_label or "").strip().lower()

        if self.HEALTHY_MARKER in label:
            return HEALTHY_REMEDIES

        remedies = self._rules[crop](label)
        if remedies is None:
            logger.info(f"No remedy rule for '{disease_label}' on {crop.value}, using generic advice")
            return GENERIC_REMEDIES
        return remedies

    # === Crop rule functions ===
    # Each receives the lower-cased label and returns None when no rule matches.

    @staticmethod
    def _apple_rules(label: str) -> Optional[RemedyRecommendations]:
        if "scab" in label:
            return RemedyRecommendations.of(
                chemical=[
                    "Spray Captan fungicide (2 g/L) from green tip stage",
                    "Spray Difenoconazole fungicide (0.3 ml/L) at 15-day intervals",
                ],
                organic=[
                    "Spray lime sulphur before bud break",
                    "Apply Bacillus subtilis bio-fungicide on young leaves",
                ],
                traditional=[
                    "Collect and burn fallen leaves in autumn",
                    "Prune the canopy to improve air flow",
                ],
            )
        if "rot" in label:
            return RemedyRecommendations.of(
                chemical=["Spray Captan fungicide (2 g/L) after petal fall"],
                organic=["Paint pruning cuts with Bordeaux paste"],
                traditional=[
                    "Remove mummified fruit and dead wood",
                    "Cut cankers 15 cm below visible damage",
                ],
            )
        if "rust" in label:
            return RemedyRecommendations.of(
                chemical=["Spray Hexaconazole fungicide (1 ml/L) at pink bud stage"],
                organic=["Spray wettable sulphur (2 g/L) in spring"],
                traditional=["Remove nearby juniper or cedar hosts"],
            )
        return None

    @staticmethod
    def _tomato_rules(label: str) -> Optional[RemedyRecommendations]:
        if "late" in label and "blight" in label:
            return RemedyRecommendations.of(
                chemical=[
                    "Spray Metalaxyl + Mancozeb fungicide (2.5 g/L) at 10-day intervals",
                    "Spray Cymoxanil + Mancozeb fungicide (3 g/L) after heavy rain",
                ],
                organic=[
                    "Spray Bordeaux mixture (1%) before monsoon onset",
                    "Remove and burn infected plants; do not compost",
                ],
                traditional=[
                    "Avoid overhead irrigation and water in the morning",
                    "Stake plants to keep foliage off the soil",
                ],
            )
        if "blight" in label:
            return RemedyRecommendations.of(
                chemical=[
                    "Spray Mancozeb fungicide (2.5 g/L) every 7-10 days",
                    "Spray Chlorothalonil fungicide (2 g/L) at first symptoms",
                ],
                organic=[
                    "Spray neem oil (5 ml/L) every 7 days",
                    "Apply Trichoderma viride to the soil at planting",
                ],
                traditional=[
                    "Remove lower infected leaves",
                    "Mulch with straw to stop soil splash",
                    "Rotate with non-solanaceous crops for 2-3 years",
                ],
            )
        if _contains(label, "mosaic", "curl", "virus"):
            return RemedyRecommendations.of(
                chemical=["Spray Imidacloprid insecticide (0.3 ml/L) against whitefly and aphid vectors"],
                organic=[
                    "Install yellow sticky traps (10 per acre)",
                    "Spray neem seed kernel extract (5%)",
                ],
                traditional=[
                    "Uproot and destroy infected plants",
                    "Grow maize as a border crop to block whiteflies",
                ],
            )
        if _contains(label, "mold", "mould"):
            return RemedyRecommendations.of(
                chemical=["Spray Difenoconazole fungicide (0.5 ml/L)"],
                organic=["Spray baking soda solution (5 g/L) weekly"],
                traditional=["Prune lower branches to increase air circulation"],
            )
        if "spot" in label:
            return RemedyRecommendations.of(
                chemical=["Spray Copper Oxychloride fungicide (3 g/L) with Streptocycline (0.1 g/L)"],
                organic=["Spray Pseudomonas fluorescens (10 g/L)"],
                traditional=[
                    "Use disease-free seed and seedlings",
                    "Remove spotted leaves and avoid working in wet fields",
                ],
            )
        return None

    @staticmethod
    def _potato_rules(label: str) -> Optional[RemedyRecommendations]:
        if "late" in label and "blight" in label:
            return RemedyRecommendations.of(
                chemical=[
                    "Spray Metalaxyl + Mancozeb fungicide (2.5 g/L) at first sign of disease",
                    "Spray Dimethomorph fungicide (1 g/L) in cool wet weather",
                ],
                organic=["Spray Bordeaux mixture (1%) as a protectant"],
                traditional=[
                    "Earth up rows to protect tubers",
                    "Destroy haulms two weeks before harvest",
                ],
            )
        if "blight" in label:
            return RemedyRecommendations.of(
                chemical=["Spray Mancozeb fungicide (2.5 g/L) every 10 days"],
                organic=["Spray neem oil (5 ml/L) on lower leaves"],
                traditional=[
                    "Apply balanced nitrogen to avoid stress",
                    "Remove volunteer plants and crop debris",
                ],
            )
        if "scab" in label:
            return RemedyRecommendations.of(
                chemical=[],
                organic=["Apply green manure before planting"],
                traditional=[
                    "Keep soil moist during tuber formation",
                    "Avoid fresh lime before planting",
                ],
            )
        return None

    @staticmethod
    def _mango_rules(label: str) -> Optional[RemedyRecommendations]:
        if "anthracnose" in label:
            return RemedyRecommendations.of(
                chemical=["Spray Carbendazim fungicide (1 g/L) at flowering and fruit set"],
                organic=["Dip harvested fruit in hot water (52 C for 5 minutes)"],
                traditional=["Prune dense branches and remove dried twigs"],
            )
        if "powdery" in label or "mildew" in label:
            return RemedyRecommendations.of(
                chemical=["Spray Hexaconazole fungicide (1 ml/L) at panicle emergence"],
                organic=["Dust wettable sulphur (2 g/L) on panicles"],
                traditional=["Avoid excess nitrogen during flowering"],
            )
        if "canker" in label:
            return RemedyRecommendations.of(
                chemical=["Spray Copper Oxychloride fungicide (3 g/L) with Streptocycline (0.1 g/L)"],
                organic=["Spray Bordeaux mixture (1%) after pruning"],
                traditional=["Cut and burn infected twigs"],
            )
        if _contains(label, "die back", "dieback"):
            return RemedyRecommendations.of(
                chemical=["Spray Copper Oxychloride fungicide (3 g/L) on pruned branches"],
                organic=["Apply Bordeaux paste to cut ends"],
                traditional=["Prune dead branches 5-8 cm below the affected part"],
            )
        if _contains(label, "sooty", "mould", "mold"):
            return RemedyRecommendations.of(
                chemical=[],
                organic=["Spray starch solution (2%) so the mould peels off when dry"],
                traditional=["Control hoppers and mealybugs that secrete honeydew"],
            )
        return None

    @staticmethod
    def _guava_rules(label: str) -> Optional[RemedyRecommendations]:
        if "anthracnose" in label:
            return RemedyRecommendations.of(
                chemical=["Spray Carbendazim fungicide (1 g/L) at 15-day intervals"],
                organic=["Spray Trichoderma harzianum suspension on foliage"],
                traditional=["Remove mummified fruit and infected shoots"],
            )
        if "canker" in label:
            return RemedyRecommendations.of(
                chemical=["Spray Copper Oxychloride fungicide (3 g/L)"],
                organic=["Spray Bordeaux mixture (1%)"],
                traditional=["Avoid injuries to fruit during cultivation"],
            )
        if "fly" in label:
            return RemedyRecommendations.of(
                chemical=["Use Malathion insecticide bait spray (1 ml/L with jaggery)"],
                organic=["Hang methyl eugenol traps (10 per acre)"],
                traditional=[
                    "Collect and bury fallen fruit deeply",
                    "Bag fruits with paper covers",
                ],
            )
        if "rot" in label:
            return RemedyRecommendations.of(
                chemical=["Spray Mancozeb fungicide (2 g/L) at fruit development"],
                organic=["Spray neem oil (5 ml/L) during humid weather"],
                traditional=["Harvest at correct maturity and avoid bruising"],
            )
        return None

    @staticmethod
    def _cotton_rules(label: str) -> Optional[RemedyRecommendations]:
        if "blight" in label:
            return RemedyRecommendations.of(
                chemical=["Spray Copper Oxychloride fungicide (3 g/L) with Streptocycline (0.1 g/L)"],
                organic=["Treat seed with Pseudomonas fluorescens (10 g/kg)"],
                traditional=[
                    "Use acid-delinted seed",
                    "Remove and burn infected plant debris",
                ],
            )
        if _contains(label, "curl", "virus"):
            return RemedyRecommendations.of(
                chemical=["Spray Acephate insecticide (1.5 g/L) against whitefly"],
                organic=["Spray neem seed kernel extract (5%)"],
                traditional=[
                    "Uproot infected plants early in the season",
                    "Remove weed hosts around the field",
                ],
            )
        if "wilt" in label:
            return RemedyRecommendations.of(
                chemical=["Drench soil with Carbendazim fungicide (1 g/L) near the root zone"],
                organic=["Apply Trichoderma viride enriched farmyard manure"],
                traditional=["Grow wilt-resistant varieties and rotate with cereals"],
            )
        return None
