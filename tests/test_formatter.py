"""
Tests for lead formatting, priority bands, insights and the stored-record model.
"""

from dataclasses import replace

import pytest

from core.entities import LeadCriteria, SubScores
from core.formatter import build_insights, format_lead, format_similar, priority_for, score_breakdown
from model.record import StoredRecord
from conftest import make_candidate

FULL = SubScores(1.0, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0)


class TestPriority:
    @pytest.mark.parametrize(
        "score,expected",
        [(100, "High"), (75, "High"), (74.9, "Medium"), (50, "Medium"), (49, "Low"), (0, "Low")],
    )
    def test_bands(self, score, expected):
        assert priority_for(score) == expected


class TestScoreBreakdown:
    def test_points_sum_to_hundred_when_every_criterion_is_perfect(self):
        parts = score_breakdown(FULL)
        assert parts["geographicMatch"] == 40.0
        assert parts["industryMatch"] == 25.0
        assert sum(parts.values()) == pytest.approx(100.0)

    def test_missing_sub_scores(self):
        assert score_breakdown(None) == {}


class TestFormatLead:
    def test_fields_and_priority(self):
        cand = make_candidate(
            "x1",
            {"Company Name": "Kanchi Silk House", "Email": "sales@kanchi.in", "City": "Chennai"},
            similarity=0.87654,
        )
        cand = replace(cand, sub_scores=FULL, final_score=80.4, match_reasons=["Region match: India"])
        lead = format_lead(cand)

        assert lead["companyName"] == "Kanchi Silk House"
        assert lead["email"] == "sales@kanchi.in"
        assert lead["region"] == "Chennai"
        assert lead["finalScore"] == 80
        assert lead["priority"] == "High"
        assert lead["vectorSimilarity"] == 0.8765
        assert lead["matchReasons"] == ["Region match: India"]

    def test_unknown_company(self):
        lead = format_lead(make_candidate("x2", {"Notes": "call back"}))
        assert lead["companyName"] == "Unknown Company"
        assert lead["priority"] == "Low"


class TestInsights:
    CRITERIA = LeadCriteria(product="Sarees", industry="Textiles", region="India")

    def test_empty(self):
        out = build_insights([], self.CRITERIA, total_analyzed=7)
        assert out["averageScore"] == 0
        assert out["totalAnalyzed"] == 7
        assert "No leads" in out["summary"]

    def test_regions_and_action(self):
        leads = [
            {"finalScore": 90, "priority": "High", "region": "Surat"},
            {"finalScore": 70, "priority": "Medium", "region": "Surat"},
            {"finalScore": 60, "priority": "Medium", "region": "Jaipur"},
        ]
        out = build_insights(leads, self.CRITERIA, total_analyzed=3)
        assert out["averageScore"] == 73
        assert out["topRegions"] == ["Surat", "Jaipur"]
        assert "1 high-priority" in out["recommendedAction"]
        assert out["summary"] == "Found 3 lead(s) for Sarees in India"


class TestFormatSimilar:
    def test_shape(self):
        (hit,) = format_similar([make_candidate("s1", {"Company": "Acme"}, similarity=0.5)])
        assert hit["score"] == 0.5
        assert hit["record"]["id"] == "s1"
        assert hit["record"]["rawFields"] == {"Company": "Acme"}


class TestStoredRecord:
    def test_to_entity_parses_timestamp_and_stringifies_cells(self):
        rec = StoredRecord.model_validate(
            {
                "id": "r9",
                "rawFields": {"Company": "Acme", "Turnover": 12.5, "Active": True},
                "embedding": "[0.1, 0.2]",
                "createdAt": "2025-05-01T10:00:00Z",
            }
        ).to_entity()
        assert rec.raw_fields == {"Company": "Acme", "Turnover": "12.5", "Active": "True"}
        assert rec.embedding == "[0.1, 0.2]"
        assert rec.created_at.year == 2025
        assert rec.source_document_id is None
