import json
from pathlib import Path

from mc_langid.data.utils import detect_languages
from mc_langid.models.profiles import LangProfile


def load_profile(path):
    """Read a langdetect-style JSON profile ({"name", "freq", "n_words"})."""
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Missing profile: {p}")
    raw = json.loads(p.read_text(encoding="utf-8"))
    return LangProfile(name=raw["name"], freq=dict(raw["freq"]), n_words=list(raw.get("n_words") or []))


def load_profiles(profile_dir, langs=None):
    base = Path(profile_dir)
    if langs is None:
        langs = detect_languages(base)
    return [load_profile(base / f"{lang}.json") for lang in langs]


def load_ngram_documents(path):
    """JSONL documents: {"lang": <true label>, "ngrams": [...]} per line."""
    p = Path(path)
    docs = []
    for ln in p.read_text(encoding="utf-8").splitlines():
        if not ln.strip():
            continue
        row = json.loads(ln)
        docs.append((row["lang"], list(row["ngrams"])))
    return docs
