# src/sharedfactor/cli.py

"""
Shared-factor scanner - batch GCD over a corpus of large integers

Description:
    Finds prime factors that numbers of a corpus share with each other and
    reports every number that is fully explained by those shared factors
    (i.e. has no private factor left). A corpus in which any number is fully
    explained came out of a weak generator.

usage: see sharedfactor -h
"""

from __future__ import annotations

import argparse
import faulthandler
import logging
import os
import random
import sys
import textwrap
import threading
import traceback
from importlib.resources import files as pkg_files
from pathlib import Path

from colorama import Fore, Style
from colorama import init as colorama_init

from sharedfactor import __version__ as _ver
from sharedfactor import config as CONFIG
from sharedfactor.bench import gcd_pair, time_gcd
from sharedfactor.corpus import ON_MALFORMED_CHOICES, load_corpus, write_corpus
from sharedfactor.engine import EngineConfig, Strategy, analyze
from sharedfactor.factorize import FACTOR_MODES
from sharedfactor.fmt import abbr_int_fast, fmt_seconds
from sharedfactor.generate import GENERATOR_MODES, generate, load_primes
from sharedfactor.output_manager import OutputManager
from sharedfactor.progress import Progress
from sharedfactor.report import render_report
from sharedfactor.runtime import APPLY, CFG, current, ensure_runtime_deps
from sharedfactor.runtime import reset as _rt_reset
from sharedfactor.utility import (
    EngineError,
    UserInputError,
    dec_str,
    flatten_dotted,
    parse_decimal,
    raise_int_str_limit,
    typename,
    validate_output_setting,
)
from sharedfactor.workspace import corpora_dir, ensure_workspace_seeded, seed_workspace, workspace_dir

COMMANDS = ("init", "where", "profiles", "active", "generate", "gcd", "bench")
DEFAULT_MAX_DIGITS = 100_000  # int<->str guard, profile BEHAVIOUR.MAX_DIGITS


def _install_loud_error_handlers(debug: bool) -> None:
    if not debug:
        return
    faulthandler.enable()

    def _excepthook(exc_type, exc, tb):
        sys.stderr.write("\n[UNCAUGHT EXCEPTION]\n")
        traceback.print_exception(exc_type, exc, tb, file=sys.stderr)
        sys.stderr.flush()
    sys.excepthook = _excepthook

    # gcd workers are threads
    def _thread_excepthook(args):
        sys.stderr.write("\n[UNCAUGHT THREAD EXCEPTION]\n")
        traceback.print_exception(args.exc_type, args.exc_value, args.exc_traceback, file=sys.stderr)
        sys.stderr.flush()
    threading.excepthook = _thread_excepthook


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _print_user_error(msg: str) -> None:
    """Uniform, one-line friendly error."""
    prefix = f"{Fore.RED}Error:{Style.RESET_ALL}"
    if not msg.startswith("Error:"):
        msg = f"{prefix} {msg}"
    print(msg, file=sys.stderr)


def _resolve_inputs(items: list[str]) -> tuple[str | None, str | None, list[str]]:
    """Return (command, profile, rest) from the positionals.

    Rules:
      - first item is a command word -> (command, None, remaining items)
      - one item  -> corpus path (profile from last-used/default)
      - two items -> (profile, corpus path)
    """
    if not items:
        return None, None, []
    if items[0].lower() in COMMANDS:
        return items[0].lower(), None, items[1:]
    if len(items) == 1:
        return None, None, items
    if len(items) == 2:
        return None, items[0], items[1:]
    raise UserInputError(f"too many arguments: {' '.join(items)}")


# ---- argparse ----
def _build_parser() -> argparse.ArgumentParser:

    epilog = textwrap.dedent("""\
    commands:
      init [overwrite]
          Create the workspace and copy the packaged profiles and sample corpus if missing.
          'overwrite' requires SHAREDFACTOR_DEV=1 and replaces your edits.

      where
          Show the workspace, corpora and package paths. A corpus name that is not
          found in the current directory is looked up in the workspace corpora.

      profiles | active
          List profiles with descriptions / show the last used profile.

      generate --mode {random,insecure,secure} [--count N] [--bits K] [--out FILE]
          Write a test corpus (one decimal per line).

      gcd A B
          Print gcd(A, B).

      bench [--bits K] [--bits2 L]
          Time one gcd of a K-bit by an L-bit random number.
    """)

    p = argparse.ArgumentParser(
        prog="sharedfactor",
        description="Shared-factor scanner - batch GCD over a corpus of large integers",
        usage=(
            "sharedfactor [profile] CORPUS [--strategy S] [--workers W] [--output OUTPUT] [--details] [--debug]\n"
            "       sharedfactor COMMAND [options]\n"
            "       sharedfactor -h | --help\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )
    p.add_argument("items", nargs="*", metavar="[profile] CORPUS | COMMAND",
                   help="optional profile name followed by a corpus file, or a command")
    p.add_argument("--version", action="version", version=f"%(prog)s {_ver}")

    eng = p.add_argument_group("analysis")
    eng.add_argument("--strategy", choices=[s.value for s in Strategy], default=None,
                     help="gcd strategy (profile ENGINE.STRATEGY)")
    eng.add_argument("--workers", type=int, default=None, help="threads for pairwise-threaded")
    eng.add_argument("--max-count", type=int, default=None, help="read at most this many numbers")
    eng.add_argument("--factor-mode", choices=FACTOR_MODES, default=None,
                     help="full: factor any gcd; word: legacy, skip gcds wider than a machine word")
    eng.add_argument("--ceiling", type=int, default=None, help="largest trial divisor (0 = unbounded)")
    eng.add_argument("--on-malformed", choices=ON_MALFORMED_CHOICES, default=None,
                     help="abort the run or skip a bad corpus line")

    out = p.add_argument_group("output")
    out.add_argument("--output", default=None, help="Append the report to a file (also prints unless --quiet)")
    out.add_argument("--quiet", action="store_true", help="Suppress progress and screen output")
    out.add_argument("--details", action="store_true", help="List every number that shares a factor, plus timings")
    out.add_argument("--debug", action="store_true", help="Debug logging and full tracebacks")

    gen = p.add_argument_group("generate / bench")
    gen.add_argument("--mode", choices=GENERATOR_MODES, default="random")
    gen.add_argument("--count", type=int, default=1000)
    gen.add_argument("--bits", type=int, default=None, help="bit length (generate: 256, bench: 256000)")
    gen.add_argument("--bits2", type=int, default=256, help="second operand width for bench")
    gen.add_argument("--seed", type=int, default=None)
    gen.add_argument("--pool-size", type=int, default=1000, help="size of synthesized prime pools")
    gen.add_argument("--primes", default=None, help="prime pool file (insecure: shared pool; secure: private pool)")
    gen.add_argument("--primes2", default=None, help="secure: shared padding pool file")
    gen.add_argument("--out", default=None, help="corpus file to write (default: stdout)")

    return p


def main(argv=None) -> int:
    """Thin wrapper: catch friendly errors, hide tracebacks unless debug."""
    try:
        return _main_impl(argv)
    except UserInputError as e:
        _print_user_error(str(e))
        return 2
    except EngineError as e:
        _print_user_error(str(e))
        return 1
    except KeyboardInterrupt:
        print("Aborted by user.", file=sys.stderr)
        return 130
    except Exception as e:
        debug = "--debug" in (argv if argv is not None else sys.argv)
        if debug:
            raise
        print(f"Unexpected error: {e.__class__.__name__}: {e}", file=sys.stderr)
        print("Run with --debug for a full traceback.", file=sys.stderr)
        return 1


# ---- commands ----

def _cmd_init(rest: list[str]) -> int:
    if rest and rest[0] == "overwrite":
        if os.environ.get("SHAREDFACTOR_DEV") != "1":
            print("Refusing to overwrite: set SHAREDFACTOR_DEV=1 to enable developer overwrite.")
            return 2
        ws, copied = seed_workspace(overwrite=True)
        print(f"Workspace ready at: {ws} (overwrote existing files)")
    else:
        ws, _, copied = ensure_workspace_seeded()
        print(f"Workspace ready at: {ws}")
    print(f"Copied -> profiles: {copied.get('profiles', 0)}, corpora: {copied.get('corpora', 0)}")
    return 0


def _cmd_generate(args) -> int:
    bits = args.bits if args.bits is not None else 256
    primes = load_primes(args.primes) if args.primes else None
    primes2 = load_primes(args.primes2) if args.primes2 else None
    try:
        values = generate(args.mode, args.count, bits, seed=args.seed, pool_size=args.pool_size,
                          primes=primes, primes2=primes2)
    except ValueError as e:
        raise UserInputError(str(e)) from None

    if args.out:
        n = write_corpus(values, args.out)
        if not args.quiet:
            print(f"Generated {n} {args.mode} numbers of {bits} bits in {args.out}")
    else:
        for v in values:
            print(dec_str(v))
    return 0


def _cmd_gcd(rest: list[str]) -> int:
    if len(rest) != 2:
        raise UserInputError("gcd needs exactly two integers")
    try:
        a, b = (parse_decimal(x) for x in rest)
    except ValueError as e:
        raise UserInputError(str(e)) from None
    print(f"GCD: {gcd_pair(a, b)}")
    return 0


def _cmd_bench(args) -> int:
    bits = args.bits if args.bits is not None else 256000
    try:
        g, secs = time_gcd(bits, args.bits2, random.Random(args.seed))
    except ValueError as e:
        raise UserInputError(str(e)) from None
    print(f"GCD: {abbr_int_fast(g)}")
    print(f"Time taken to calculate GCD of {bits}-bit and {args.bits2}-bit numbers: {secs:.6f} seconds")
    return 0


def _apply_profile(profile: str | None, debug: bool) -> str:
    """
    Precedence:
      1) explicit profile positional
      2) last used (from workspace)
      3) 'default'
    """
    if profile and not CONFIG.has_profile(profile):
        names = ", ".join(CONFIG.list_all_profiles())
        raise UserInputError(f"Unknown profile: '{profile}'. Available profiles: {names}")

    name = profile
    if not name:
        last = CONFIG.read_current_profile()
        name = last if last and CONFIG.has_profile(last) else "default"

    selected = CONFIG.load_settings(name)
    APPLY(selected)
    if profile:
        CONFIG.write_current_profile(profile)

    rt = current()
    if debug or rt.debug:
        print(f"[debug] active profile: {rt.profile_name}", file=sys.stderr)
        if selected._source:
            print(f"[debug] profile file: {selected._source}", file=sys.stderr)
        flat = flatten_dotted(selected.as_dict())
        for k in sorted(flat, key=str.lower):
            v = CFG(k, None)
            print(f"        {k:.<40} {v!r} ({typename(v)})", file=sys.stderr)
        print(file=sys.stderr)
    return name


def _resolve_corpus_path(item: str) -> Path:
    """A relative name that does not exist here is looked up in the workspace corpora."""
    p = Path(item).expanduser()
    if p.exists() or p.is_absolute():
        return p
    alt = corpora_dir() / p
    return alt if alt.exists() else p


def _cmd_analyze(args, profile: str | None, rest: list[str]) -> int:
    if not rest:
        raise UserInputError("no corpus file given (see sharedfactor -h)")
    path = _resolve_corpus_path(rest[0])

    _apply_profile(profile, bool(args.debug))
    rt = current()
    if rt.debug and not args.debug:
        _configure_logging(True)
    # the profile may turn debug on but never off against --debug
    rt.debug = rt.debug or bool(args.debug)
    rt_debug = rt.debug
    raise_int_str_limit(int(CFG("BEHAVIOUR.MAX_DIGITS", DEFAULT_MAX_DIGITS)))

    try:
        config = EngineConfig.from_runtime(
            strategy=args.strategy,
            workers=args.workers,
            factor_mode=args.factor_mode,
            candidate_ceiling=args.ceiling,
        )
    except ValueError as e:
        raise UserInputError(str(e)) from None

    max_count = args.max_count if args.max_count is not None else CFG("INPUT.MAX_COUNT", None)
    max_count = None if max_count in (None, 0) else int(max_count)
    on_malformed = args.on_malformed or str(CFG("INPUT.ON_MALFORMED", "abort")).lower()
    if on_malformed not in ON_MALFORMED_CHOICES:
        raise UserInputError(f"INPUT.ON_MALFORMED must be one of {', '.join(ON_MALFORMED_CHOICES)}")

    try:
        corpus = load_corpus(path, max_count=max_count, on_malformed=on_malformed)
    except FileNotFoundError:
        raise UserInputError(f"corpus file not found: {path}") from None

    try:
        target = validate_output_setting(args.output if args.output is not None else CFG("OUTPUT.OUTPUT_FILE", None))
    except ValueError as e:
        raise UserInputError(f"--output: {e}") from None

    show_progress = config.strategy.is_pairwise and not args.quiet and rt.progress
    bar = Progress(enabled=bool(show_progress), label=f"{config.strategy.value} rows")

    if rt_debug:
        print(
            f"[debug] {len(corpus)} numbers, strategy={config.strategy.value}, "
            f"workers={config.effective_workers}, factor_mode={config.factor_mode}, "
            f"ceiling={config.candidate_ceiling}",
            file=sys.stderr,
        )

    try:
        analysis = analyze(corpus, config, progress=bar if show_progress else None)
    finally:
        bar.done()

    details = args.details or bool(CFG("OUTPUT.DETAILS", False))
    om = OutputManager(output_file=target, quiet=args.quiet)
    try:
        render_report(analysis, om, details=details)
        if rt_debug:
            t = analysis.timings
            print(f"[debug] gcd {fmt_seconds(t['gcd'])}, factor {fmt_seconds(t['factor'])}, "
                  f"verify {fmt_seconds(t['verify'])}", file=sys.stderr)
    finally:
        om.close()
    return 0


# ---- main ----
def _main_impl(argv=None) -> int:

    colorama_init(autoreset=True)

    parser = _build_parser()
    args = parser.parse_args(argv)
    rt = _rt_reset()
    rt.debug = bool(args.debug)

    _configure_logging(args.debug)
    _install_loud_error_handlers(args.debug)

    if not ensure_runtime_deps(strict=True):
        return 1
    raise_int_str_limit(DEFAULT_MAX_DIGITS)

    command, profile, rest = _resolve_inputs(args.items)

    if command == "init":
        return _cmd_init(rest)

    ensure_workspace_seeded()

    if command == "where":
        print(f"Workspace: {workspace_dir()}")
        print(f"Corpora:   {corpora_dir()}")
        print(f"Package:   {pkg_files('sharedfactor')}")
        return 0
    if command == "profiles":
        for name, desc in CONFIG.list_profiles_with_descriptions():
            print(f"{Fore.YELLOW}{name:<12}{Style.RESET_ALL} {desc}")
        return 0
    if command == "active":
        print(f"Active profile: {CONFIG.read_current_profile() or 'default'}")
        return 0
    if command == "generate":
        return _cmd_generate(args)
    if command == "gcd":
        return _cmd_gcd(rest)
    if command == "bench":
        return _cmd_bench(args)

    if not rest:
        parser.print_help()
        return 2
    return _cmd_analyze(args, profile, rest)


if __name__ == "__main__":
    raise SystemExit(main())
