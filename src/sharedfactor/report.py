# src/sharedfactor/report.py
from __future__ import annotations

from colorama import Fore, Style

from sharedfactor.engine import Analysis, NumberResult
from sharedfactor.fmt import abbr_int_fast, fmt_factors, fmt_seconds
from sharedfactor.output_manager import OutputManager
from sharedfactor.utility import dec_str


def verdict_line(r: NumberResult, *, color: bool = True) -> str:
    """'[index] value: f1,f2,...' for a fully explained number."""
    idx = f"[{r.index}]"
    if color:
        idx = f"{Fore.GREEN}{idx}{Style.RESET_ALL}"
    return f"{idx} {dec_str(r.value)}: {fmt_factors(r.factors.tokens, color=color)}"


def aggregate_line(analysis: Analysis, *, color: bool = True) -> str:
    msg = analysis.aggregate_message
    if not color:
        return msg
    tint = Fore.RED if analysis.any_explained else Fore.GREEN
    return f"{tint}{Style.BRIGHT}{msg}{Style.RESET_ALL}"


def render_report(analysis: Analysis, om: OutputManager, *, details: bool = False, color: bool = True) -> None:
    """
    One line per fully explained number, then the aggregate judgment.

    With details=True, every number that shares anything is listed first
    (explained or not) together with its batch gcd when there is one.
    """
    if details:
        shared = analysis.shared
        om.write(f"{Style.BRIGHT}Shared factors ({len(shared)} of {len(analysis.results)} numbers):{Style.RESET_ALL}"
                 if color else f"Shared factors ({len(shared)} of {len(analysis.results)} numbers):")
        for r in shared:
            state = "explained" if r.verdict else "private factor left"
            gcd = f" gcd={abbr_int_fast(r.gcd)}" if r.gcd is not None else ""
            om.write(f"  #{r.index}{gcd} factors={fmt_factors(r.factors.tokens, color=color)} ({state})")
        om.write("")

    for r in analysis.explained:
        om.write(verdict_line(r, color=color))

    om.write(aggregate_line(analysis, color=color))

    if details:
        t = analysis.timings
        om.write(
            f"strategy={analysis.strategy.value} numbers={len(analysis.results)} "
            f"shared={len(analysis.shared)} explained={len(analysis.explained)} "
            f"gcd={fmt_seconds(t.get('gcd', 0.0))} factor={fmt_seconds(t.get('factor', 0.0))} "
            f"verify={fmt_seconds(t.get('verify', 0.0))}"
        )
