from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping

from schemas import Message

# Letters and digits of any script survive, plus whitespace, combining marks
# and the RTL blocks (Hebrew, Arabic, Arabic Supplement/Extended, presentation
# forms A and B).
_PUNCTUATION = re.compile(r"[^\w\s\u0300-\u036F\u0590-\u08FF\uFB1D-\uFDFF\uFE70-\uFEFF]|_")
_WHITESPACE = re.compile(r"\s+")

NOTE_MEMBER_LIMIT = 3

SYNONYM_GROUPS: tuple[tuple[str, ...], ...] = (
    ("computer science", "cs", "computing", "bilgisayar bilimleri", "علوم الحاسوب", "علوم الحاسب"),
    ("computer engineering", "ce", "bilgisayar mühendisliği", "هندسة الحاسوب", "هندسة الكمبيوتر"),
    ("software engineering", "se", "software", "yazılım mühendisliği", "هندسة البرمجيات"),
    ("electrical engineering", "ee", "electrical and electronics engineering", "elektrik elektronik mühendisliği", "الهندسة الكهربائية"),
    ("mechanical engineering", "me", "makine mühendisliği", "الهندسة الميكانيكية"),
    ("civil engineering", "inşaat mühendisliği", "الهندسة المدنية"),
    ("industrial engineering", "ie", "endüstri mühendisliği", "الهندسة الصناعية"),
    ("architecture", "mimarlık", "العمارة", "الهندسة المعمارية"),
    ("business administration", "business", "management", "mba", "bba", "işletme", "إدارة الأعمال"),
    ("economics", "econ", "iktisat", "ekonomi", "الاقتصاد"),
    ("international relations", "ir", "uluslararası ilişkiler", "العلاقات الدولية"),
    ("medicine", "md", "mbbs", "tıp", "الطب", "طب"),
    ("dentistry", "dds", "diş hekimliği", "طب الأسنان"),
    ("pharmacy", "pharmd", "eczacılık", "الصيدلة"),
    ("nursing", "hemşirelik", "التمريض"),
    ("law", "llb", "hukuk", "القانون", "الحقوق"),
    ("psychology", "psych", "psikoloji", "علم النفس"),
    ("artificial intelligence", "ai", "machine learning", "yapay zeka", "الذكاء الاصطناعي"),
    ("data science", "veri bilimi", "علم البيانات", "علوم البيانات"),
    ("graphic design", "grafik tasarım", "التصميم الجرافيكي"),
)

# Adjacent fields tried only after a primary search returned nothing.
NEAR_EQUIVALENTS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "computer science": ("software engineering", "computer engineering", "data science", "artificial intelligence"),
        "computer engineering": ("computer science", "software engineering", "electrical engineering"),
        "software engineering": ("computer science", "computer engineering"),
        "electrical engineering": ("computer engineering", "mechanical engineering"),
        "mechanical engineering": ("industrial engineering", "civil engineering"),
        "civil engineering": ("architecture", "mechanical engineering"),
        "industrial engineering": ("mechanical engineering", "business administration"),
        "architecture": ("civil engineering", "graphic design"),
        "business administration": ("economics", "international relations"),
        "economics": ("business administration", "international relations"),
        "international relations": ("economics", "law"),
        "medicine": ("dentistry", "pharmacy", "nursing"),
        "dentistry": ("medicine", "pharmacy"),
        "pharmacy": ("medicine", "nursing"),
        "nursing": ("medicine", "pharmacy"),
        "law": ("international relations", "economics"),
        "psychology": ("nursing", "economics"),
        "artificial intelligence": ("computer science", "data science"),
        "data science": ("computer science", "artificial intelligence", "economics"),
        "graphic design": ("architecture",),
    }
)


@dataclass(frozen=True)
class KeywordExpansion:
    expanded: list[str] = field(default_factory=list)
    synonym_notes: list[Message] = field(default_factory=list)


def normalize_keyword(value: str) -> str:
    # "İ".lower() yields "i" plus a combining dot above; Turkish spellings drop the dot.
    text = unicodedata.normalize("NFC", value or "").lower().replace("\u0307", "")
    text = _PUNCTUATION.sub(" ", unicodedata.normalize("NFC", text))
    return _WHITESPACE.sub(" ", text).strip()


def _merge_groups(groups: Iterable[Iterable[str]]) -> list[list[str]]:
    merged: list[list[str]] = []
    for group in groups:
        terms = [term for term in (normalize_keyword(item) for item in group) if term]
        overlapping = [existing for existing in merged if set(existing) & set(terms)]
        combined = list(dict.fromkeys([term for existing in overlapping for term in existing] + terms))
        merged = [existing for existing in merged if all(existing is not other for other in overlapping)]
        merged.append(combined)
    return merged


def _build_index(groups: Iterable[Iterable[str]]) -> Mapping[str, tuple[str, ...]]:
    index: dict[str, tuple[str, ...]] = {}
    for group in _merge_groups(groups):
        members = tuple(group)
        for term in members:
            index[term] = members
    return MappingProxyType(index)


SYNONYM_INDEX = _build_index(SYNONYM_GROUPS)


def _build_near_index() -> Mapping[str, tuple[str, ...]]:
    index: dict[str, tuple[str, ...]] = {}
    for key, adjacent in NEAR_EQUIVALENTS.items():
        normalized = normalize_keyword(key)
        for member in SYNONYM_INDEX.get(normalized, (normalized,)):
            index[member] = adjacent
    return MappingProxyType(index)


_NEAR_INDEX = _build_near_index()


def _synonym_note(keyword: str, others: list[str]) -> Message:
    shown = ", ".join(others[:NOTE_MEMBER_LIMIT])
    if len(others) > NOTE_MEMBER_LIMIT:
        shown += ", …"
    return Message(
        ar=f"تم توسيع البحث عن «{keyword}» ليشمل: {shown}",
        en=f"Search for '{keyword}' also includes: {shown}",
    )


def expand_keywords(keywords: Iterable[str] | None) -> KeywordExpansion:
    expanded: dict[str, None] = {}
    notes: list[Message] = []
    for raw in keywords or []:
        keyword = normalize_keyword(raw)
        if not keyword:
            continue
        expanded.setdefault(keyword, None)
        group = SYNONYM_INDEX.get(keyword)
        if not group:
            continue
        for member in group:
            expanded.setdefault(member, None)
        others = [member for member in group if member != keyword]
        if others:
            notes.append(_synonym_note(keyword, others))
    return KeywordExpansion(expanded=list(expanded), synonym_notes=notes)


def suggest_near_equivalents(keywords: Iterable[str] | None) -> list[str]:
    terms = list(keywords or [])
    covered = set(expand_keywords(terms).expanded)
    suggestions: dict[str, None] = {}
    for raw in terms:
        for candidate in _NEAR_INDEX.get(normalize_keyword(raw), ()):
            if candidate not in covered:
                suggestions.setdefault(candidate, None)
    return list(suggestions)
