"""Static reference data (skill synonyms, seniority scale)."""
