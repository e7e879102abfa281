"""Data-driven pattern tables used by the classifier and structure detector.

Every table is a tuple of :class:`NamedPattern` so new languages can be added
without touching control flow. The built-in pack covers Spanish and English;
:func:`load_pattern_pack` extends it from a YAML file such as::

    important_sections:
      - name: conclusion_pt
        pattern: "conclus(?:ão|ões)"
    reference_headers:
      - name: references_pt
        pattern: "referências(?: bibliográficas)?"
    imryd_headers:
      - name: introduction
        pattern: "introdução"
    part_keywords: ["Parte"]
    chapter_keywords: ["Capítulo"]

Header patterns are bare alternatives; they are anchored to a whole line
(with optional numbering and trailing colon) when compiled.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

__all__ = [
    "IMRYD_SECTIONS",
    "NamedPattern",
    "PatternPack",
    "ReferenceSignalPatterns",
    "default_pattern_pack",
    "load_pattern_pack",
]

IMRYD_SECTIONS: tuple[str, ...] = (
    "abstract",
    "introduction",
    "methods",
    "results",
    "discussion",
    "references",
)

_FLAGS = re.IGNORECASE | re.UNICODE
# Optional "3." / "IV)" numbering before a heading, optional colon after it.
_HEADER_TEMPLATE = r"^\s*(?:(?:\d{{1,2}}|[IVX]{{1,4}})[.)]?\s+)?(?:{body})\s*:?\s*$"


@dataclass(frozen=True, slots=True)
class NamedPattern:
    name: str
    regex: re.Pattern[str]


def header(name: str, body: str) -> NamedPattern:
    """Compile a whole-line heading pattern."""
    return NamedPattern(name, re.compile(_HEADER_TEMPLATE.format(body=body), _FLAGS))


def search(name: str, pattern: str) -> NamedPattern:
    """Compile a free-text indicator pattern."""
    return NamedPattern(name, re.compile(pattern, _FLAGS))


@dataclass(frozen=True, slots=True)
class ReferenceSignalPatterns:
    """Language-neutral bibliographic signals."""

    doi: re.Pattern[str] = re.compile(
        r"(?:doi[:\s]*10\.\d{4,}|doi\.org/10\.\d{4,}|https?://doi\.org/10\.\d{4,})", re.I
    )
    pmid: re.Pattern[str] = re.compile(r"pmid[:\s]*\d{6,}", re.I)
    pubmed_url: re.Pattern[str] = re.compile(r"pubmed\.ncbi\.nlm\.nih\.gov/\d+", re.I)
    # "18. Shaw JE..." - capital letter is significant, so no IGNORECASE
    numbered_entry: re.Pattern[str] = re.compile(r"^\s*\d{1,3}\.\s+[A-Z][a-záéíóúñ]+", re.M)
    journal_citation: re.Pattern[str] = re.compile(r"\d{4}\s*;\s*\d+\s*\(\s*\d+\s*\)\s*:\s*\d+")
    et_al: re.Pattern[str] = re.compile(r"et\s+al\.?", re.I)
    year_semicolon: re.Pattern[str] = re.compile(r"(?:19|20)\d{2}\s*;")


IMPORTANT_SECTIONS: tuple[NamedPattern, ...] = (
    header("conclusion", r"conclusi[oó]n(?:es)?|conclusions?"),
    header("complications", r"complicaci[oó]n(?:es)?|complications?"),
    header("limitations", r"limitaci[oó]n(?:es)?|limitations?"),
    header("discussion", r"discusi[oó]n|discussion"),
    header("results", r"resultados?|results?"),
    header("clinical_implications", r"implicaci[oó]n(?:es)?\s+cl[ií]nicas?|clinical\s+implications?"),
    header(
        "future_research",
        r"investigaci[oó]n\s+futura|future\s+research|direcci[oó]n(?:es)?\s+futuras?",
    ),
    header("recommendations", r"recomendaci[oó]n(?:es)?|recommendations?"),
    header("summary_of_findings", r"resumen\s+(?:final|de\s+hallazgos)|summary\s+of\s+findings"),
    header("key_points", r"puntos?\s+clave|key\s+points?|mensajes?\s+(?:clave|principales?)"),
)

REFERENCE_HEADERS: tuple[NamedPattern, ...] = (
    header("references", r"references?"),
    header("referencias", r"referencias?(?:\s+bibliogr[aá]ficas?)?"),
    header("bibliography", r"bibliography"),
    header("bibliografia", r"bibliograf[ií]a"),
    header("works_cited", r"works?\s+cited"),
    header("cited_references", r"cited\s+references?"),
    header("literature_cited", r"literature\s+cited"),
)

CONTENT_INDICATORS: tuple[NamedPattern, ...] = (
    search("study_en", r"\b(?:study|studies|research|trial|cohort)\b"),
    search("study_es", r"\b(?:estudio|estudios|investigación|ensayo|cohorte)\b"),
    search("patient_en", r"\b(?:patient|patients|participant|participants)\b"),
    search("patient_es", r"\b(?:paciente|pacientes|participante|participantes)\b"),
    search("result_en", r"\b(?:result|results|outcome|outcomes|finding|findings)\b"),
    search("result_es", r"\b(?:resultado|resultados|hallazgo|hallazgos)\b"),
    search("method_en", r"\b(?:method|methods|methodology)\b"),
    search("method_es", r"\b(?:método|métodos|metodología)\b"),
    search("conclusion_en", r"\b(?:conclusion|conclusions|discussion)\b"),
    search("conclusion_es", r"\b(?:conclusión|conclusiones|discusión)\b"),
    search("treatment_en", r"\b(?:treatment|therapy|intervention)\b"),
    search("treatment_es", r"\b(?:tratamiento|terapia|intervención)\b"),
    search("diagnosis_en", r"\b(?:diagnosis|diagnostic|prognosis)\b"),
    search("diagnosis_es", r"\b(?:diagnóstico|pronóstico)\b"),
    search("p_value", r"\bp\s*[<>=]\s*0\.\d+"),
    search("confidence_interval", r"\b(?:CI|IC)\s*[:=]?\s*\d+\.?\d*\s*[-–]\s*\d+\.?\d*"),
    search("effect_ratio", r"\b(?:OR|RR|HR)\s*[:=]?\s*\d+\.?\d*"),
)

IMRYD_HEADERS: tuple[NamedPattern, ...] = (
    header("abstract", r"abstract|resumen"),
    header("introduction", r"introduction|introducci[oó]n|background|antecedentes"),
    header(
        "methods",
        r"methods?|methodology|materials?\s+and\s+methods|patients\s+and\s+methods"
        r"|m[eé]todos?|metodolog[ií]a|materiales?\s+y\s+m[eé]todos|pacientes\s+y\s+m[eé]todos",
    ),
    header("results", r"results?|resultados?"),
    header("discussion", r"discussion|discusi[oó]n"),
    header(
        "references",
        r"references?|referencias?(?:\s+bibliogr[aá]ficas?)?|bibliography|bibliograf[ií]a",
    ),
)

PART_KEYWORDS: tuple[str, ...] = ("Part", "Parte", "PART", "PARTE")
CHAPTER_KEYWORDS: tuple[str, ...] = ("Chapter", "Capítulo", "Capitulo", "CHAPTER", "CAPÍTULO")


def _ordinal_header(keywords: Iterable[str], number: str) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(k) for k in keywords)
    return re.compile(rf"^\s*(?:{alternatives})\s+({number})[\s:.\-]*(.*)$")


@dataclass(frozen=True)
class PatternPack:
    """Complete set of tables for one or more languages."""

    important_sections: tuple[NamedPattern, ...] = IMPORTANT_SECTIONS
    reference_headers: tuple[NamedPattern, ...] = REFERENCE_HEADERS
    content_indicators: tuple[NamedPattern, ...] = CONTENT_INDICATORS
    imryd_headers: tuple[NamedPattern, ...] = IMRYD_HEADERS
    part_keywords: tuple[str, ...] = PART_KEYWORDS
    chapter_keywords: tuple[str, ...] = CHAPTER_KEYWORDS
    signals: ReferenceSignalPatterns = field(default_factory=ReferenceSignalPatterns)

    @property
    def part_header(self) -> re.Pattern[str]:
        return _ordinal_header(self.part_keywords, r"[IVX0-9]+(?:\.[0-9]+)?")

    @property
    def chapter_header(self) -> re.Pattern[str]:
        return _ordinal_header(self.chapter_keywords, r"[0-9]+(?:\.[0-9]+)?")

    def match_line(self, table: Sequence[NamedPattern], line: str) -> NamedPattern | None:
        """Return the first entry of ``table`` matching ``line``."""
        for entry in table:
            if entry.regex.match(line):
                return entry
        return None


def default_pattern_pack() -> PatternPack:
    return PatternPack()


def _entries(raw: Any, key: str, factory: Any) -> tuple[NamedPattern, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ValueError(f"'{key}' must be a list of {{name, pattern}} objects")
    out: list[NamedPattern] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict) or not isinstance(item.get("pattern"), str):
            raise ValueError(f"'{key}[{i}]' must be an object with a string 'pattern'")
        name = str(item.get("name") or f"{key}_{i}")
        try:
            out.append(factory(name, item["pattern"]))
        except re.error as exc:
            raise ValueError(f"'{key}[{i}]' is not a valid regex: {exc}") from exc
    return tuple(out)


def _keywords(raw: Any, key: str) -> tuple[str, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list) or not all(isinstance(k, str) for k in raw):
        raise ValueError(f"'{key}' must be list[str]")
    return tuple(raw)


def load_pattern_pack(path: str | Path, base: PatternPack | None = None) -> PatternPack:
    """Extend ``base`` (default: built-in ES/EN pack) with a YAML language pack.

    Raises:
        ValueError: If the file is not a mapping or an entry is malformed.
    """

    src = Path(path)
    data = yaml.safe_load(src.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"pattern pack {src.name} must be a mapping")
    pack = base or default_pattern_pack()
    imryd_extra = _entries(data.get("imryd_headers"), "imryd_headers", header)
    unknown = [e.name for e in imryd_extra if e.name not in IMRYD_SECTIONS]
    if unknown:
        raise ValueError(f"unknown IMRyD sections: {', '.join(unknown)}")
    return replace(
        pack,
        important_sections=pack.important_sections
        + _entries(data.get("important_sections"), "important_sections", header),
        reference_headers=pack.reference_headers
        + _entries(data.get("reference_headers"), "reference_headers", header),
        content_indicators=pack.content_indicators
        + _entries(data.get("content_indicators"), "content_indicators", search),
        imryd_headers=pack.imryd_headers + imryd_extra,
        part_keywords=pack.part_keywords + _keywords(data.get("part_keywords"), "part_keywords"),
        chapter_keywords=pack.chapter_keywords
        + _keywords(data.get("chapter_keywords"), "chapter_keywords"),
    )
