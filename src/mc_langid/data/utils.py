from pathlib import Path


def detect_languages(profile_dir):
    """Return list of language codes (one *.json profile each in profile_dir)."""
    return sorted(p.stem for p in Path(profile_dir).glob("*.json") if p.is_file())


def parse_prior(pairs):
    """['en=0.7', 'de=0.3'] -> {'en': 0.7, 'de': 0.3}"""
    prior = {}
    for item in pairs or []:
        lang, sep, weight = item.partition("=")
        if not sep or not lang:
            raise ValueError(f"Prior must look like lang=weight, got {item!r}")
        prior[lang] = float(weight)
    return prior
