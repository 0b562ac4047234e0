"""
Naming transforms shared by the resolver and both emitters.

All transforms are deterministic and purely lexical; they never consult a
dictionary of irregular words.
"""

import re

_SIBILANT_ES = re.compile(r"(s|x|z|ch|sh)es$")


def snake_case(name: str) -> str:
    """Convert PascalCase or camelCase to snake_case."""
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


def pascal_case(name: str) -> str:
    """Convert snake_case to PascalCase (``blog_post`` -> ``BlogPost``)."""
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


def camel_case(name: str) -> str:
    """Convert snake_case to camelCase (``author_id`` -> ``authorId``)."""
    pascal = pascal_case(name)
    return pascal[:1].lower() + pascal[1:]


def singularize(word: str) -> str:
    """
    Singularize an English plural using three suffix rules.

    - ``ies`` -> ``y`` (categories -> category)
    - ``ses``/``xes``/``zes``/``ches``/``shes`` drop ``es`` (boxes -> box)
    - a trailing ``s`` not preceded by ``s`` is dropped (posts -> post)

    Anything else is returned unchanged.
    """
    if word.endswith("ies") and len(word) > 3:
        return word[:-3] + "y"
    if _SIBILANT_ES.search(word):
        return word[:-2]
    if word.endswith("s") and not word.endswith("ss") and len(word) > 1:
        return word[:-1]
    return word


def pluralize(word: str) -> str:
    """Inverse of :func:`singularize` for the same three rules."""
    if word.endswith("y") and len(word) > 1 and word[-2] not in "aeiou":
        return word[:-1] + "ies"
    if re.search(r"(s|x|z|ch|sh)$", word):
        return word + "es"
    return word + "s"


def association_target_candidates(association_name: str) -> list[str]:
    """
    Resource names an association may refer to when no target is given.

    The singularized, PascalCased form comes first, followed by the plain
    PascalCased form when it differs (``status`` -> ``Statu``, ``Status``).
    """
    candidates = [pascal_case(singularize(association_name))]
    plain = pascal_case(association_name)
    if plain not in candidates:
        candidates.append(plain)
    return candidates
