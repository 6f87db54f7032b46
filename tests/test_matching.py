"""
Unit tests for the matching engine: scoring terms, reasons, ranking.
"""

import asyncio

import pytest

from cvmatch.config import MatchingSettings
from cvmatch.pipelines.matching import (
    FALLBACK_REASON,
    match_job,
    match_reasons,
    rank_resumes,
    score,
    score_breakdown,
    seniority_index,
)


def with_seniority(resume, level):
    resume.professional.seniority = level
    return resume


class TestScore:
    """Tests for the pure score function"""

    def test_full_must_have_coverage_is_fifty(self, make_job, make_resume):
        job = make_job(must_have=["React", "TypeScript"])
        resume = make_resume(skills=["React", "TypeScript"])
        assert score(job, resume) == 50

    def test_partial_coverage_is_proportional(self, make_job, make_resume):
        job = make_job(must_have=["React", "TypeScript", "GraphQL", "Redux"], nice_to_have=["Docker", "AWS"])
        resume = make_resume(skills=["React", "Docker"])
        breakdown = score_breakdown(job, resume)

        assert breakdown.must_have == 12.5
        assert breakdown.nice_to_have == 10.0
        assert score(job, resume) == 23

    def test_match_is_case_insensitive_substring_of_canonical_skill(self, make_job, make_resume):
        job = make_job(must_have=["java", "WEB SERVICES"])
        resume = make_resume(skills=["JS", "aws"])
        # "js" canonicalizes to "javascript", "aws" to "amazon web services"
        assert score_breakdown(job, resume).must_have == 50

    @pytest.mark.parametrize("skill", ["AWS", "JS", "C#", "Node.js", ".NET", "GCP"])
    def test_synonym_skill_listed_on_both_sides_matches(self, make_job, make_resume, skill):
        job = make_job(must_have=[skill])
        resume = make_resume(skills=[skill])

        assert score(job, resume) == 50
        assert match_reasons(job, resume, 50)[0] == f"Matches 1 required skills: {skill}"

    def test_job_synonym_matches_resume_canonical_name(self, make_job, make_resume):
        job = make_job(must_have=["nodejs"], nice_to_have=["GCP"])
        resume = make_resume(skills=["JavaScript", "Google Cloud Platform"])
        assert score(job, resume) == 70

    def test_experience_keywords_capped_at_twenty(self, make_job, make_resume):
        job = make_job(must_have=["python"], keywords=["api", "django", "postgres"])
        many = make_resume(descriptions=["Python API with Django and Postgres"] * 5)
        few = make_resume(descriptions=["Built an API", "nothing relevant"])

        assert score_breakdown(job, many).experience == 20
        assert score_breakdown(job, few).experience == 2

    def test_seniority_proximity(self, make_job, make_resume):
        job = make_job(seniority="Senior")

        assert score_breakdown(job, with_seniority(make_resume(), "senior")).seniority == 10
        assert score_breakdown(job, with_seniority(make_resume(), "lead")).seniority == 7
        assert score_breakdown(job, with_seniority(make_resume(), "junior")).seniority == 4
        assert score_breakdown(make_job(seniority="principal"), with_seniority(make_resume(), "junior")).seniority == 0

    def test_seniority_requires_both_sides_on_scale(self, make_job, make_resume):
        assert score_breakdown(make_job(seniority="senior"), make_resume()).seniority == 0
        assert score_breakdown(make_job(seniority="wizard"), with_seniority(make_resume(), "senior")).seniority == 0

    def test_rounds_half_up(self, make_job, make_resume):
        # 1 of 8 must-haves: 6.25 -> 6
        job = make_job(must_have=["a1", "b2", "c3", "d4", "e5", "f6", "g7", "h8"])
        assert score(job, make_resume(skills=["a1"])) == 6
        # 1 of 4: 12.5 -> 13
        job = make_job(must_have=["a1", "b2", "c3", "d4"])
        assert score(job, make_resume(skills=["a1"])) == 13

    def test_score_never_exceeds_hundred(self, make_job, make_resume):
        job = make_job(must_have=["go"], nice_to_have=["rust"], keywords=["go", "rust"])
        resume = with_seniority(make_resume(skills=["Go", "Rust"], descriptions=["go rust"] * 10), "senior")
        assert score(job, resume) == 100

    def test_score_is_deterministic(self, make_job, make_resume):
        job = make_job(must_have=["React"], nice_to_have=["Jest"], keywords=["frontend"])
        resume = make_resume(skills=["React"], descriptions=["frontend work"])

        first = (score(job, resume), match_reasons(job, resume, score(job, resume)))
        for _ in range(5):
            assert (score(job, resume), match_reasons(job, resume, score(job, resume))) == first

    def test_custom_weights(self, make_job, make_resume):
        config = MatchingSettings(must_have_weight=80)
        job = make_job(must_have=["React"])
        assert score(job, make_resume(skills=["React"]), config) == 80

    def test_seniority_index(self):
        assert seniority_index(" Mid-Level ") == 1
        assert seniority_index(None) is None
        assert seniority_index("intern") is None


class TestMatchReasons:
    """Tests for human-readable reasons"""

    def test_lists_matched_skills_and_experience(self, make_job, make_resume):
        job = make_job(must_have=["React", "TypeScript"], nice_to_have=["Docker"], keywords=["frontend"])
        resume = make_resume(skills=["React", "TypeScript", "Docker"], descriptions=["frontend lead", "cooking"])

        reasons = match_reasons(job, resume, 80)

        assert reasons == [
            "Matches 2 required skills: React, TypeScript",
            "Has 1 preferred skills: Docker",
            "1 relevant experience(s) found",
            "Excellent overall match",
        ]

    @pytest.mark.parametrize("value,label", [(80, "Excellent overall match"), (79, "Good match"), (60, "Good match")])
    def test_qualitative_label(self, make_job, make_resume, value, label):
        reasons = match_reasons(make_job(), make_resume(), value)
        assert reasons == [label]

    def test_fallback_reason(self, make_job, make_resume):
        assert match_reasons(make_job(), make_resume(), 10) == [FALLBACK_REASON]


class TestRanking:
    """Tests for ranking and exclusion"""

    def test_zero_scores_are_excluded(self, make_job, make_resume):
        job = make_job(seniority="principal", must_have=["React", "TypeScript"], keywords=["frontend"])
        b = with_seniority(make_resume(skills=["COBOL"], descriptions=["mainframe batch jobs"]), "junior")

        assert score(job, b) == 0
        assert rank_resumes(job, [b]) == []

    def test_matching_resume_outranks_non_matching(self, make_job, make_resume):
        job = make_job(must_have=["React", "TypeScript"])
        a = make_resume(name="A", skills=["React", "TypeScript"])
        b = make_resume(name="B", skills=["Java"])

        results = rank_resumes(job, [b, a])

        assert [r.resume_id for r in results] == [a.resume_id]
        assert results[0].candidate_id == a.candidate_id
        assert results[0].score == 50

    def test_sorted_descending_with_stable_ties(self, make_job, make_resume):
        job = make_job(must_have=["React", "TypeScript"])
        half_1 = make_resume(skills=["React"])
        full = make_resume(skills=["React", "TypeScript"])
        half_2 = make_resume(skills=["TypeScript"])
        half_3 = make_resume(skills=["React"])

        results = rank_resumes(job, [half_1, full, half_2, half_3])

        assert [r.resume_id for r in results] == [
            full.resume_id, half_1.resume_id, half_2.resume_id, half_3.resume_id,
        ]
        assert [r.score for r in results] == [50, 25, 25, 25]

    def test_job_without_requirements_matches_nobody(self, make_job, make_resume):
        assert rank_resumes(make_job(), [make_resume(skills=["Go"])]) == []

    def test_match_job_reads_store(self, store, make_job, make_resume):
        job = make_job(must_have=["React", "TypeScript"])
        a = make_resume(skills=["React", "TypeScript"], text="a")
        b = make_resume(skills=["Java"], text="b")

        async def run():
            await store.save_resume(b)
            await store.save_resume(a)
            return await match_job(store, job)

        results = asyncio.run(run())

        assert [r.resume_id for r in results] == [a.resume_id]
        assert results[0].reasons == ["Matches 2 required skills: React, TypeScript"]

    def test_match_job_keeps_resume_matched_only_by_synonym(self, store, make_job, make_resume):
        job = make_job(must_have=["AWS"])
        resume = make_resume(skills=["aws"], text="cloud")

        async def run():
            await store.save_resume(resume)
            return await match_job(store, job)

        results = asyncio.run(run())

        assert [r.resume_id for r in results] == [resume.resume_id]
        assert results[0].score == 50

    def test_match_job_on_empty_store(self, store, make_job):
        assert asyncio.run(match_job(store, make_job(must_have=["Go"]))) == []
