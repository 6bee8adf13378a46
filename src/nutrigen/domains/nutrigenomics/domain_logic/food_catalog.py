"""Static food-domain catalog and meal-timing templates.

Read-only, built once at import. Food groups are referenced by name from the
report composer's per-marker rules.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from nutrigen.domains.nutrigenomics.domain_logic.models import FoodItem, MealTimingTemplate

HIGH_FOLATE = "high_folate"
OMEGA3_RICH = "omega3_rich"
LOW_SODIUM = "low_sodium"
HIGH_PROTEIN = "high_protein"
ANTIOXIDANT_RICH = "antioxidant_rich"

GENETIC_FOOD_DATABASE: Mapping[str, tuple[FoodItem, ...]] = MappingProxyType({
    HIGH_FOLATE: (
        FoodItem("Dark leafy greens (spinach, kale)", "folate", "263mcg/cup", "high bioavailability"),
        FoodItem("Asparagus", "folate", "262mcg/cup", "high bioavailability"),
        FoodItem("Brussels sprouts", "folate", "156mcg/cup", "moderate bioavailability"),
        FoodItem("Broccoli", "folate", "104mcg/cup", "moderate bioavailability"),
        FoodItem("Avocado", "folate", "90mcg/cup", "high bioavailability"),
        FoodItem("Lentils", "folate", "358mcg/cup", "moderate bioavailability"),
        FoodItem("Chickpeas", "folate", "282mcg/cup", "moderate bioavailability"),
    ),
    OMEGA3_RICH: (
        FoodItem("Wild salmon", "omega-3", "1.8g/serving", "EPA/DHA"),
        FoodItem("Sardines", "omega-3", "1.3g/serving", "EPA/DHA"),
        FoodItem("Mackerel", "omega-3", "2.6g/serving", "EPA/DHA"),
        FoodItem("Walnuts", "omega-3", "2.5g/oz", "ALA"),
        FoodItem("Chia seeds", "omega-3", "5g/oz", "ALA"),
        FoodItem("Flaxseeds", "omega-3", "6.4g/oz", "ALA"),
    ),
    LOW_SODIUM: (
        FoodItem("Fresh fruits", "sodium", "<5mg/serving", "high potassium"),
        FoodItem("Fresh vegetables", "sodium", "<10mg/serving", "high potassium"),
        FoodItem("Plain yogurt", "sodium", "150mg/cup", "573mg potassium"),
        FoodItem("Unsalted nuts", "sodium", "<5mg/oz", "moderate potassium"),
        FoodItem("Herbs and spices", "sodium", "0mg", "flavor without salt"),
    ),
    HIGH_PROTEIN: (
        FoodItem("Lean chicken breast", "protein", "31g/serving", "high satiety"),
        FoodItem("Greek yogurt", "protein", "20g/cup", "high satiety"),
        FoodItem("Eggs", "protein", "6g/egg", "high satiety"),
        FoodItem("Quinoa", "protein", "8g/cup", "moderate satiety"),
        FoodItem("Legumes", "protein", "15g/cup", "high satiety"),
        FoodItem("Fish", "protein", "25g/serving", "high satiety"),
    ),
    ANTIOXIDANT_RICH: (
        FoodItem("Blueberries", "anthocyanins", "", "high neuroprotection"),
        FoodItem("Dark chocolate (70%+)", "flavonoids", "", "moderate neuroprotection"),
        FoodItem("Green tea", "catechins", "", "moderate neuroprotection"),
        FoodItem("Turmeric", "curcumin", "", "high neuroprotection"),
        FoodItem("Pomegranate", "polyphenols", "", "moderate neuroprotection"),
    ),
})


STANDARD = "standard"
HIGH_PROTEIN_FREQUENT = "high_protein_frequent"
TIME_RESTRICTED = "time_restricted"
CIRCADIAN_OPTIMIZED = "circadian_optimized"

MEAL_TIMING_TEMPLATES: Mapping[str, MealTimingTemplate] = MappingProxyType({
    STANDARD: MealTimingTemplate(
        STANDARD, "3 meals + 2 snacks", "Every 3-4 hours", "Standard metabolic pattern",
    ),
    HIGH_PROTEIN_FREQUENT: MealTimingTemplate(
        HIGH_PROTEIN_FREQUENT, "5-6 small meals", "Every 2-3 hours",
        "Better appetite control for FTO variants",
    ),
    TIME_RESTRICTED: MealTimingTemplate(
        TIME_RESTRICTED, "2-3 meals in 8-10 hour window", "Intermittent fasting approach",
        "Metabolic benefits for obesity-prone individuals",
    ),
    CIRCADIAN_OPTIMIZED: MealTimingTemplate(
        CIRCADIAN_OPTIMIZED, "Larger breakfast, moderate lunch, light dinner",
        "Aligned with natural rhythms", "Supports healthy sleep and metabolism",
    ),
})


# Base foods for the weekly rotation when no genetic food group applies.
BALANCED_STAPLES: tuple[str, ...] = (
    "Oats",
    "Mixed vegetables",
    "Brown rice",
    "Beans",
    "Seasonal fruit",
    "Olive oil",
    "Whole-grain bread",
)

MEAL_GUIDELINES: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "breakfast": (
        "Include a protein source",
        "Add a serving of fruit or vegetables",
    ),
    "lunch": (
        "Half the plate non-starchy vegetables",
        "Include a lean protein and a whole grain",
    ),
    "dinner": (
        "Lean protein with vegetables",
        "Keep portions moderate in the evening",
    ),
    "snacks": (
        "Pair protein or fat with fiber",
        "Prefer whole foods over packaged snacks",
    ),
})
