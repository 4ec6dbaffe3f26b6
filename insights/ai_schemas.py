# insights/ai_schemas.py

DEMAND_LEVELS = ("HIGH", "MEDIUM", "LOW")
MARKET_OUTLOOKS = ("POSITIVE", "NEUTRAL", "NEGATIVE")

INSIGHT_FIELDS = (
    "salaryRanges",
    "growthRate",
    "demandLevel",
    "topSkills",
    "marketOutlook",
    "keyTrends",
    "recommendedSkills",
)

LIST_FIELDS = ("salaryRanges", "topSkills", "keyTrends", "recommendedSkills")

SALARY_RANGE_SCHEMA = {
    "type": "object",
    "properties": {
        "role": {"type": "string"},
        "min": {"type": "number"},
        "max": {"type": "number"},
        "median": {"type": "number"},
        "location": {"type": "string"},
    },
    "required": ["role", "min", "max", "median", "location"],
}

INDUSTRY_INSIGHT_SCHEMA = {
    "type": "object",
    "properties": {
        "salaryRanges": {"type": "array", "items": SALARY_RANGE_SCHEMA},
        # Percentage, e.g. 8.5 for 8.5%
        "growthRate": {"type": "number"},
        "demandLevel": {"type": "string", "enum": ["High", "Medium", "Low"]},
        "topSkills": {"type": "array", "items": {"type": "string"}},
        "marketOutlook": {"type": "string", "enum": ["Positive", "Neutral", "Negative"]},
        "keyTrends": {"type": "array", "items": {"type": "string"}},
        "recommendedSkills": {"type": "array", "items": {"type": "string"}},
    },
    "required": list(INSIGHT_FIELDS),
}
