# ============================================================================
# FILE: tests/unit/test_bacterial_table_parser.py
# ============================================================================
"""
Unit tests for the bacterial taxonomy table parser
"""

import re

import pytest

from src.health_ingestion.core.models import BacterialEntry
from src.health_ingestion.extractors import (
    BacterialTableParser,
    RegexCandidate,
    parse_bacterial_line,
    smart_separate_taxonomy,
    split_quantity_percentage,
)
from src.health_ingestion.extractors.bacterial_table_parser import split_genus_species


BLAUTIA_LINE = "Bacteria Firmicutes Clostridia Clostridiales Lachnospiraceae Blautia obeum 488917,50%"


# ============================================================================
# QUANTITY / PERCENTAGE SUFFIX
# ============================================================================

@pytest.mark.parametrize("line,quantity,percentage", [
    ("Blautia obeum 4889 17,50%", 4889, 17.5),     # spaced
    ("Blautia obeum 488917,50%", 4889, 17.5),      # 4-digit run-together
    ("Blautia obeum 3101,10%", 310, 1.1),          # 3-digit quantity
    ("Blautia obeum 17,50%", 0, 17.5),             # percentage only
    ("Blautia obeum 0.85%", 0, 0.85),
])
def test_split_quantity_percentage(line, quantity, percentage):
    """Test suffix heuristics in order"""
    got_quantity, got_percentage, remaining = split_quantity_percentage(line)
    assert (got_quantity, got_percentage) == (quantity, percentage)
    assert remaining.split() == ["Blautia", "obeum"]


def test_split_quantity_percentage_malformed():
    """Test an unreadable suffix falls through to zeros"""
    quantity, percentage, remaining = split_quantity_percentage("Blautia obeum n/a%")
    assert (quantity, percentage) == (0, 0.0)
    assert remaining.split() == ["Blautia", "obeum"]


def test_split_quantity_percentage_no_suffix():
    """Test a line without percentage keeps its text"""
    assert split_quantity_percentage("Blautia obeum") == (0, 0.0, "Blautia obeum")


# ============================================================================
# TAXONOMY SEPARATION
# ============================================================================

def test_smart_separate_run_together_taxonomy():
    """Test vocabulary prefixes, family suffix and genus suffix"""
    levels = smart_separate_taxonomy(
        "FirmicutesClostridiaClostridialesRuminococcaceaeFaecalibacteriumprausnitzii"
    )
    assert levels == {
        "phylum": "Firmicutes",
        "class": "Clostridia",
        "order": "Clostridiales",
        "family": "Ruminococcaceae",
        "genus": "Faecalibacterium",
        "species": "prausnitzii",
    }


def test_smart_separate_spaced_genus_species():
    """Test a whitespace boundary between genus and species wins"""
    levels = smart_separate_taxonomy("BacteroidetesBacteroidiaBacteroidalesBacteroidaceae Bacteroides fragilis")
    assert levels["family"] == "Bacteroidaceae"
    assert levels["genus"] == "Bacteroides"
    assert levels["species"] == "fragilis"


@pytest.mark.parametrize("remaining,expected", [
    ("Bifidobacteriumlongum", ("Bifidobacterium", "longum")),
    ("Lactococcuslactis", ("Lactococcus", "lactis")),
    ("Abc", ("Abc", "sp")),
    ("", ("Unknown", "Unknown")),
])
def test_split_genus_species(remaining, expected):
    """Test genus suffix heuristics and fallbacks"""
    assert split_genus_species(remaining) == expected


def test_smart_separate_unknown_levels():
    """Test unresolvable levels are Unknown"""
    levels = smart_separate_taxonomy("")
    assert set(levels.values()) == {"Unknown"}


# ============================================================================
# LINE PARSER
# ============================================================================

def test_parse_bacterial_line_scenario():
    """Test the run-together quantity/percentage line"""
    entry = parse_bacterial_line(BLAUTIA_LINE)

    assert entry == BacterialEntry(
        kingdom="Bacteria",
        phylum="Firmicutes",
        class_name="Clostridia",
        order="Clostridiales",
        family="Lachnospiraceae",
        genus="Blautia",
        species="obeum",
        quantity=4889,
        percentage=17.50,
    )
    assert entry.pattern_used == "positional_line"


def test_parse_bacterial_line_compact():
    """Test a line with no spaces inside the taxonomy"""
    entry = parse_bacterial_line(
        "Bacteria FirmicutesClostridiaClostridialesRuminococcaceaeFaecalibacteriumprausnitzii 12,34%"
    )
    assert entry.phylum == "Firmicutes"
    assert entry.family == "Ruminococcaceae"
    assert entry.full_name == "Faecalibacterium prausnitzii"
    assert entry.quantity == 0
    assert entry.percentage == 12.34


def test_parse_bacterial_line_archaea():
    """Test Archaea rows"""
    entry = parse_bacterial_line(
        "Archaea Euryarchaeota Methanobacteria Methanobacteriales Methanobacteriaceae "
        "Methanobrevibacter smithii 310 1,10%"
    )
    assert entry.kingdom == "Archaea"
    assert entry.genus == "Methanobrevibacter"
    assert entry.quantity == 310


def test_parse_bacterial_line_requires_kingdom():
    """Test lines without a kingdom prefix are dropped"""
    assert parse_bacterial_line("Firmicutes Clostridia 12,00%") is None
    assert parse_bacterial_line("") is None


# ============================================================================
# CANDIDATE CHAIN
# ============================================================================

def test_parse_single_row_scenario():
    """Test the run-together row via the full parser"""
    entries = BacterialTableParser().parse(BLAUTIA_LINE)

    assert len(entries) == 1
    entry = entries[0]
    assert entry.key == (
        "Bacteria", "Firmicutes", "Clostridia", "Clostridiales",
        "Lachnospiraceae", "Blautia", "obeum",
    )
    assert entry.quantity == 4889
    assert entry.percentage == 17.50


def test_parse_table_page(taxonomy_page_text):
    """Test every row of a flattened table page"""
    entries = BacterialTableParser().parse(taxonomy_page_text)

    assert [e.full_name for e in entries] == [
        "Blautia obeum",
        "Bacteroides fragilis",
        "Methanobrevibacter smithii",
    ]
    assert [e.pattern_used for e in entries] == [
        "strict_bacteria",
        "strict_bacteria",
        "strict_archaea",
    ]
    assert entries[2].kingdom == "Archaea"


def test_parse_sorted_by_percentage():
    """Test output is sorted descending by percentage"""
    text = (
        "Bacteria Firmicutes Bacilli Lactobacillales Lactobacillaceae Lactobacillus reuteri 10 0,50% "
        "Bacteria Verrucomicrobia Verrucomicrobiae Verrucomicrobiales Akkermansiaceae Akkermansia muciniphila 900 8,00% "
        "Bacteria Firmicutes Clostridia Clostridiales Lachnospiraceae Roseburia faecis 300 2,75%"
    )
    entries = BacterialTableParser().parse(text)

    percentages = [e.percentage for e in entries]
    assert percentages == sorted(percentages, reverse=True)
    assert percentages == [8.0, 2.75, 0.5]


def test_parse_dedup_first_wins():
    """Test repeated composite keys keep the first occurrence"""
    text = (
        "Bacteria Firmicutes Clostridia Clostridiales Lachnospiraceae Blautia obeum 4889 17,50% "
        "Bacteria Firmicutes Clostridia Clostridiales Lachnospiraceae Blautia obeum 100 1,00%"
    )
    entries = BacterialTableParser().parse(text)

    assert len(entries) == 1
    assert entries[0].quantity == 4889


def test_parse_mixed_formats_no_double_count():
    """Test a spaced row and a run-together row each yield one entry"""
    text = (
        "Bacteria Firmicutes Clostridia Clostridiales Lachnospiraceae Blautia obeum 4889 17,50% "
        "Bacteria Bacteroidetes Bacteroidia Bacteroidales Bacteroidaceae Bacteroides fragilis 120005,25%"
    )
    entries = BacterialTableParser().parse(text)

    assert [(e.genus, e.quantity, e.percentage) for e in entries] == [
        ("Blautia", 4889, 17.5),
        ("Bacteroides", 1200, 5.25),
    ]


def test_parse_empty_and_unmatched_text():
    """Test text without rows gives no entries"""
    parser = BacterialTableParser()
    assert parser.parse("") == []
    assert parser.parse("Nenhuma bactéria detectada") == []


def test_custom_candidate_chain():
    """Test a parser built from a custom chain"""
    candidate = RegexCandidate(
        "simple",
        re.compile(r"(\w+)\s+(\w+)\s+(\w+)\s+(\w+)\s+(\w+)\s+(\w+)\s+(\d+)\s+(\d+[.,]\d+)%"),
        kingdom="Bacteria",
    )
    parser = BacterialTableParser(candidates=[candidate])

    entries = parser.parse("P C O F G s 5 1,00%")

    assert len(entries) == 1
    assert entries[0].pattern_used == "simple"
    assert entries[0].species == "s"
