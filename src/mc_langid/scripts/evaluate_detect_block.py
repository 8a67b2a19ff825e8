#!/usr/bin/env python3
import argparse
from pathlib import Path

from mc_langid.data.datasets import load_ngram_documents, load_profiles
from mc_langid.data.utils import detect_languages, parse_prior
from mc_langid.models.detect_block import ProbabilityCollapseError
from mc_langid.models.detector import (
    ALPHA_DEFAULT, N_TRIAL, UNKNOWN_LANG, Detector, NoFeaturesError,
)
from mc_langid.models.profiles import create_detector_factory, omit_less_freq


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument("--profile_dir", type=Path, default=Path("profiles"))
    ap.add_argument("--docs", type=Path, default=Path("data/eval_ngrams.jsonl"))
    ap.add_argument("--alpha", type=float, default=ALPHA_DEFAULT)
    ap.add_argument("--n_trial", type=int, default=N_TRIAL)
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--prior", nargs="*", default=[], help="lang=weight pairs")
    ap.add_argument("--omit_less_freq", action="store_true", help="prune rare n-grams from the profiles")
    ap.add_argument("--outdir", type=Path, default=Path("outputs"))
    args = ap.parse_args(argv)
    if not 0 <= args.alpha < float("inf"):
        ap.error(f"--alpha must be finite and non-negative, got {args.alpha}")

    langs = detect_languages(args.profile_dir)
    print(f"[INFO] Detected languages: {langs}")

    profiles = load_profiles(args.profile_dir, langs)
    if args.omit_less_freq:
        for profile in profiles:
            omit_less_freq(profile)
    factory = create_detector_factory(profiles, seed=args.seed)
    detector = Detector(factory, alpha=args.alpha, n_trial=args.n_trial)
    if args.prior:
        detector.set_prior_map(parse_prior(args.prior))

    docs = load_ngram_documents(args.docs)
    print(f"[INFO] Loaded {len(docs)} documents from {args.docs}")

    labels = langs + [UNKNOWN_LANG]
    conf = {t: {p: 0 for p in labels} for t in labels}
    correct = total = 0
    rows = []
    for true, ngrams in docs:
        try:
            ranked = detector.get_probabilities(ngrams)
        except NoFeaturesError:
            ranked = []
        except ProbabilityCollapseError as exc:
            print(f"[WARN] {true} document with {len(ngrams)} n-grams: {exc}")
            ranked = []
        pred = ranked[0].lang if ranked else UNKNOWN_LANG
        conf.setdefault(true, {p: 0 for p in labels})[pred] += 1
        correct += int(pred == true)
        total += 1
        rows.append((true, pred, {r.lang: r.prob for r in ranked}, len(ngrams)))

    acc = correct / max(1, total)
    print(f"Accuracy (alpha={args.alpha}, n_trial={args.n_trial}): {acc:.3f}")

    header = "true\\pred".ljust(8) + "".join(f"{lg:>8}" for lg in labels)
    lines = [
        f"[INFO] Detected languages: {langs}",
        f"Accuracy (alpha={args.alpha}, n_trial={args.n_trial}): {acc:.3f}",
        "",
        "Confusion Matrix:",
        header,
    ]
    for t in conf:
        lines.append(t.ljust(8) + "".join(f"{conf[t][p]:>8}" for p in labels))
    lines.append("")
    lines.append("True  Pred  " + " ".join(f"{lg:>8}" for lg in langs) + "  #ngrams")
    lines.append("-" * 120)
    for t, p, sc, n in rows:
        score_str = " ".join(f"{sc.get(lg, 0.0):8.3f}" for lg in langs)
        lines.append(f"{t:<5} {p:<5} {score_str}  {n}")

    print("\n".join(lines[3:]))
    args.outdir.mkdir(parents=True, exist_ok=True)
    outpath = args.outdir / "detect_block.txt"
    outpath.write_text("\n".join(lines), encoding="utf-8")
    print(f"[SAVED] {outpath}")
    return acc


if __name__ == "__main__":
    main()
