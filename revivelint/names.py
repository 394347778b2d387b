"""Suggested spellings for identifiers."""

from __future__ import annotations

COMMON_INITIALISMS = frozenset(
    {
        "ACL", "API", "ASCII", "CPU", "CSS", "DNS", "EOF", "GUID", "HTML",
        "HTTP", "HTTPS", "ID", "IP", "JSON", "LHS", "QPS", "RAM", "RHS",
        "RPC", "SLA", "SMTP", "SQL", "SSH", "TCP", "TLS", "TTL", "UDP", "UI",
        "UID", "UUID", "URI", "URL", "UTF8", "VM", "XML", "XMPP", "XSRF",
        "XSS",
    }
)


def _upper_char(ch: str) -> str:
    upper = ch.upper()
    return upper if len(upper) == 1 else ch


def lint_name(name: str) -> str:
    """Return the camel-cased spelling ``name`` should have.

    Underscores are dropped (one is kept between two digits) and common
    initialisms are written in a consistent case.
    """
    if name == "_" or all(ch.islower() for ch in name):
        return name

    runes = list(name)
    word_start = 0
    i = 0
    while i + 1 <= len(runes):
        end_of_word = False
        if i + 1 == len(runes):
            end_of_word = True
        elif runes[i + 1] == "_":
            end_of_word = True
            run = 1
            while i + run + 1 < len(runes) and runes[i + run + 1] == "_":
                run += 1
            if (
                i + run + 1 < len(runes)
                and runes[i].isdecimal()
                and runes[i + run + 1].isdecimal()
            ):
                run -= 1
            del runes[i + 1 : i + 1 + run]
        elif runes[i].islower() and not runes[i + 1].islower():
            end_of_word = True
        i += 1
        if not end_of_word:
            continue

        word = "".join(runes[word_start:i])
        upper = word.upper()
        if upper in COMMON_INITIALISMS:
            if word_start == 0 and runes[word_start].islower():
                upper = upper.lower()
            runes[word_start : word_start + len(upper)] = list(upper)
        elif word_start > 0 and word.lower() == word:
            runes[word_start] = _upper_char(runes[word_start])
        word_start = i
    return "".join(runes)