# ============================================================================
# src/health_ingestion/extractors/bacterial_table_parser.py
# ============================================================================
"""
Bacterial Taxonomy Table Parser

Lab PDFs render the taxonomy table (Reino Filo Classe Ordem Família Gênero
Espécie Quantidade %) without recoverable column boundaries once flattened,
so rows are re-derived from the text:

1. CANDIDATE CHAIN
   Ordered candidates run over the whole page text, strictest first:
   - strict_bacteria:  "Bacteria" + 6 taxonomy columns + quantity + percent
   - strict_archaea:   same with "Archaea"
   - two_kingdom:      either kingdom, exactly one token per column
   - generic:          any 6 word columns + quantity + percent (kingdom Bacteria)
   - positional_line:  kingdom-prefixed segment ending in a run-together
                       quantity+percent ("488917,50%"), split by parse_bacterial_line
   A later candidate only sees text the earlier ones did not claim.

2. DEDUP
   Composite key (kingdom..species); first seen wins.

3. SORT
   Descending by percentage (stable).

parse_bacterial_line / smart_separate_taxonomy are also used directly by the
comprehensive extractor on "LISTA DE BACTERIAS" rows.

The positional digit split (4-digit quantity + 2.2 percentage) is a heuristic
observed in one vendor's exports, not a format guarantee.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Iterator, List, Optional, Pattern, Sequence, Tuple

from ..constants.taxonomy import (
    PHYLA,
    CLASSES,
    ORDERS,
    FAMILY_SUFFIXES,
    GENUS_SUFFIXES,
    match_longest_prefix,
)
from ..core.models import BacterialEntry, UNKNOWN, dedupe_by_key, sort_by_percentage

logger = logging.getLogger(__name__)

# Column token: no whitespace, not a percentage, not the start of the next row
_TOKEN = r"(?!(?:Bacteria|Archaea)\b)[^\s%]+"
_MULTI = rf"{_TOKEN}(?:\s+{_TOKEN})*?"
_TAIL = r"\s+(\d+)\s+(\d+[.,]\d+)%"

_KINGDOM_PREFIX = re.compile(r"^\s*(Bacteria|Archaea)(?![a-z])")

# Quantity/percentage suffixes, tried in order
_SPACED_SUFFIX = re.compile(r"(?<=\s)(\d+)\s+(\d{1,3}[.,]\d{1,2})%$")
_FOUR_DIGIT_SUFFIX = re.compile(r"(\d{4})(\d{1,2}[.,]\d{2})%$")
_VARIABLE_SUFFIX = re.compile(r"(\d{3,5})(\d{1,2}[.,]\d{2})%$")
_PERCENT_ONLY_SUFFIX = re.compile(r"(\d{1,2}[.,]\d{2})%$")
_ANY_PERCENT_SUFFIX = re.compile(r"\S*%$")

_FAMILY_PATTERN = re.compile(
    r"^([A-Z][a-z]*(?:"
    + "|".join(FAMILY_SUFFIXES)
    + r"|_\d+|_incertae_sedis|_Incertae_Sedis_[A-Z]+))"
)

_GENUS_SPLITS: Tuple[Pattern[str], ...] = tuple(
    re.compile(rf"^(.*{suffix})([a-z]{{4,}})$") for suffix in GENUS_SUFFIXES
) + (re.compile(r"^(.{4,10})([a-z]{4,})$"),)

# Minimum whitespace tokens for a column-by-column split
POSITIONAL_MIN_TOKENS = 6


# ============================================================================
# LINE-LEVEL HEURISTICS
# ============================================================================

def _to_float(value: str) -> float:
    return float(value.replace(",", "."))


def split_quantity_percentage(line: str) -> Tuple[int, float, str]:
    """
    Split the trailing quantity+percentage off a taxonomy line.

    Order:
    1. spaced       "... 4889 17,50%"  -> (4889, 17.5)
    2. 4-digit      "... 488917,50%"   -> (4889, 17.5)
    3. 3-5 digit    "... 3101,10%"     -> (310, 1.1)
    4. percent only "... 17,50%"       -> (0, 17.5)

    Returns:
        (quantity, percentage, remaining text). A malformed suffix gives
        quantity=0 and percentage=0.
    """
    line = line.rstrip()

    for pattern in (_SPACED_SUFFIX, _FOUR_DIGIT_SUFFIX, _VARIABLE_SUFFIX):
        match = pattern.search(line)
        if match:
            percentage = _to_float(match.group(2))
            if percentage <= 100:
                return int(match.group(1)), percentage, line[:match.start()]

    match = _PERCENT_ONLY_SUFFIX.search(line)
    if match:
        return 0, _to_float(match.group(1)), line[:match.start()]

    # Malformed: drop any trailing "...%" token so it cannot become a species
    match = _ANY_PERCENT_SUFFIX.search(line)
    if match:
        line = line[:match.start()]
    return 0, 0.0, line


def split_genus_species(remaining: str) -> Tuple[str, str]:
    """
    Split what is left after family into genus and species.

    A whitespace boundary wins; otherwise try the genus suffixes
    (-ium, -ella, -coccus, -vibrio, -bacter), then a 4-10 character genus.
    """
    remaining = remaining.strip()
    if not remaining:
        return UNKNOWN, UNKNOWN

    parts = remaining.split(None, 1)
    if len(parts) == 2:
        return parts[0], " ".join(parts[1].split())

    for pattern in _GENUS_SPLITS:
        match = pattern.match(remaining)
        if match:
            return match.group(1), match.group(2)

    return remaining, "sp"


def smart_separate_taxonomy(taxonomy: str) -> Dict[str, str]:
    """
    Separate a (possibly run-together) taxonomy string into six levels.

    "FirmicutesClostridiaClostridialesRuminococcaceaeFaecalibacteriumprausnitzii"
        -> Firmicutes / Clostridia / Clostridiales / Ruminococcaceae /
           Faecalibacterium / prausnitzii

    Phylum, class and order are consumed from the front by longest
    vocabulary prefix; family by its morphological suffix. Unresolved
    levels are "Unknown".
    """
    remaining = taxonomy.strip()
    levels = {}

    for level, vocabulary in (("phylum", PHYLA), ("class", CLASSES), ("order", ORDERS)):
        name = match_longest_prefix(remaining, vocabulary)
        levels[level] = name or UNKNOWN
        if name:
            remaining = remaining[len(name):].lstrip()

    family_match = _FAMILY_PATTERN.match(remaining)
    if family_match:
        levels["family"] = family_match.group(1)
        remaining = remaining[family_match.end():].lstrip()
    else:
        levels["family"] = UNKNOWN

    levels["genus"], levels["species"] = split_genus_species(remaining)
    return levels


def parse_bacterial_line(line: str) -> Optional[BacterialEntry]:
    """
    Parse one taxonomy row into a BacterialEntry.

    Rows must start with "Bacteria" or "Archaea". With six or more
    whitespace-separated taxonomy tokens the columns are taken positionally
    (species keeps any extra tokens); otherwise smart_separate_taxonomy
    re-derives them.

    Args:
        line: e.g. "Bacteria Firmicutes Clostridia Clostridiales
              Lachnospiraceae Blautia obeum 488917,50%"

    Returns:
        BacterialEntry, or None when the line has no kingdom prefix
    """
    if not line:
        return None

    kingdom_match = _KINGDOM_PREFIX.match(line)
    if not kingdom_match:
        return None

    kingdom = kingdom_match.group(1).capitalize()
    body = line[kingdom_match.end():].strip()

    quantity, percentage, taxonomy = split_quantity_percentage(body)
    tokens = taxonomy.split()

    if len(tokens) >= POSITIONAL_MIN_TOKENS:
        phylum, class_name, order, family, genus = tokens[:5]
        species = " ".join(tokens[5:])
    else:
        levels = smart_separate_taxonomy(taxonomy)
        phylum = levels["phylum"]
        class_name = levels["class"]
        order = levels["order"]
        family = levels["family"]
        genus = levels["genus"]
        species = levels["species"]

    return BacterialEntry(
        kingdom=kingdom,
        phylum=phylum,
        class_name=class_name,
        order=order,
        family=family,
        genus=genus,
        species=species,
        quantity=quantity,
        percentage=percentage,
        raw_match=line.strip(),
        pattern_used="positional_line",
    )


# ============================================================================
# CANDIDATE CHAIN
# ============================================================================

Span = Tuple[int, int]


class CandidateParser(ABC):
    """One strategy in the chain; yields (span, entry) pairs for a text."""

    name: str = "candidate"

    @abstractmethod
    def candidates(self, text: str) -> Iterator[Tuple[Span, BacterialEntry]]:
        ...


class RegexCandidate(CandidateParser):
    """
    Regex with one group per column.

    ``kingdom`` fixes the kingdom; when None the first group holds it.
    """

    def __init__(self, name: str, pattern: Pattern[str], kingdom: Optional[str] = None):
        self.name = name
        self.pattern = pattern
        self.kingdom = kingdom

    def candidates(self, text: str) -> Iterator[Tuple[Span, BacterialEntry]]:
        for match in self.pattern.finditer(text):
            groups = [g.strip() for g in match.groups()]
            if self.kingdom is None:
                kingdom, groups = groups[0].capitalize(), groups[1:]
            else:
                kingdom = self.kingdom

            phylum, class_name, order, family, genus, species, quantity, percentage = groups
            yield match.span(), BacterialEntry(
                kingdom=kingdom,
                phylum=phylum,
                class_name=class_name,
                order=order,
                family=family,
                genus=genus,
                species=" ".join(species.split()),
                quantity=int(quantity),
                percentage=_to_float(percentage),
                raw_match=match.group(0),
                pattern_used=self.name,
            )


class PositionalLineCandidate(CandidateParser):
    """Kingdom-prefixed segments handed to parse_bacterial_line."""

    name = "positional_line"

    # Case-sensitive so run-together rows ("BacteriaFirmicutes...") still
    # start a segment while "Proteobacteria" does not
    SEGMENT = re.compile(
        r"(?<![A-Za-z])(?:Bacteria|Archaea)(?![a-z])"
        r"(?:(?!(?<![A-Za-z])(?:Bacteria|Archaea)(?![a-z]))[^%])*?\d[.,]\d{1,2}%"
    )

    def candidates(self, text: str) -> Iterator[Tuple[Span, BacterialEntry]]:
        for match in self.SEGMENT.finditer(text):
            entry = parse_bacterial_line(match.group(0))
            if entry is not None:
                yield match.span(), entry


DEFAULT_CANDIDATES: Tuple[CandidateParser, ...] = (
    RegexCandidate(
        "strict_bacteria",
        re.compile(rf"\bBacteria\s+(\S+)\s+(\S+)\s+(\S+)\s+(\S+)\s+({_MULTI})\s+({_MULTI}){_TAIL}", re.IGNORECASE),
        kingdom="Bacteria",
    ),
    RegexCandidate(
        "strict_archaea",
        re.compile(rf"\bArchaea\s+(\S+)\s+(\S+)\s+(\S+)\s+(\S+)\s+({_MULTI})\s+({_MULTI}){_TAIL}", re.IGNORECASE),
        kingdom="Archaea",
    ),
    RegexCandidate(
        "two_kingdom",
        re.compile(r"\b(Bacteria|Archaea)" +r"\s+([^\s%]+)" * 6 + _TAIL, re.IGNORECASE),
    ),
    RegexCandidate(
        "generic",
        re.compile(r"(\w+)\s+(\w+)\s+(\w+)\s+(\w+)\s+([^\s%]+)\s+([^\s%]+)" + _TAIL),
        kingdom="Bacteria",
    ),
    PositionalLineCandidate(),
)


class BacterialTableParser:
    """
    Runs the candidate chain over a page and returns unique, sorted entries.

    Text that matches no candidate is dropped silently.
    """

    def __init__(self, candidates: Optional[Sequence[CandidateParser]] = None):
        self.logger = logging.getLogger(__name__)
        self.candidates = tuple(candidates) if candidates is not None else DEFAULT_CANDIDATES

    def parse(self, text: str) -> List[BacterialEntry]:
        """
        Parse every taxonomy row in ``text``.

        Returns:
            Entries sorted descending by percentage
        """
        if not text:
            return []

        claimed: List[Span] = []
        collected: List[BacterialEntry] = []

        for candidate in self.candidates:
            accepted: List[Span] = []
            for span, entry in candidate.candidates(text):
                if _overlaps(span, claimed):
                    continue
                accepted.append(span)
                collected.append(entry)
            claimed.extend(accepted)

        entries = sort_by_percentage(dedupe_by_key(collected))

        if entries:
            top = ", ".join(f"{e.full_name} {e.percentage}%" for e in entries[:3])
            self.logger.info(f"Extracted {len(entries)} unique taxonomy entries (top: {top})")

        return entries


def _overlaps(span: Span, claimed: Iterable[Span]) -> bool:
    start, end = span
    return any(start < c_end and c_start < end for c_start, c_end in claimed)
