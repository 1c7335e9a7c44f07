from __future__ import annotations


def apply_casing(model: str, target: str) -> str:
    """Return target with the letter casing of model.

    Position i of target takes the case of model[i]. Past the end of model the
    case of the last cased model character is carried forward. Characters
    without case (digits, punctuation) do not change the running case.

    >>> apply_casing("Abc", "xyz")
    'Xyz'
    >>> apply_casing("ABC", "xy")
    'XY'
    >>> apply_casing("abc", "XYZW")
    'xyzw'
    """
    upper = False
    out: list[str] = []
    for i, ch in enumerate(target):
        if i < len(model):
            m = model[i]
            if m.isupper():
                upper = True
            elif m.islower():
                upper = False
        out.append(ch.upper() if upper else ch.lower())
    return "".join(out)
