"""Fixed skill synonym table and seniority scale used for canonicalization.

Keys are compared after lowercasing, trimming and accent stripping.
"""

SKILL_SYNONYMS = [
    {
        "canonical_skill": "javascript",
        "synonyms": ["js", "nodejs", "node.js"],
    },
    {
        "canonical_skill": "python",
        "synonyms": ["py"],
    },
    {
        "canonical_skill": "amazon web services",
        "synonyms": ["aws"],
    },
    {
        "canonical_skill": "google cloud platform",
        "synonyms": ["gcp"],
    },
    {
        "canonical_skill": "mssql",
        "synonyms": ["sqlserver"],
    },
    {
        "canonical_skill": "csharp",
        "synonyms": ["c#"],
    },
    {
        "canonical_skill": "dotnet",
        "synonyms": [".net"],
    },
]

# Ordered from least to most senior
SENIORITY_LEVELS = ["junior", "mid-level", "senior", "lead", "principal"]
