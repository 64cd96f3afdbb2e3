"""
Plain-language explanations of a settlement.

build_explanation_prompt() renders a deterministic text summary of the ledger
(people, expenses with shares, net balances, transfers) for a text-generation
model. build_algorithmic_explanation() walks the transfer list and shows how
each payment shrinks the remaining debt and credit; it is always produced and
is the only explanation when the model is unavailable.
"""
from __future__ import annotations
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Union

from openai import AzureOpenAI, OpenAIError

from computations import allocate_shares
from config import ExplanationSettings, load_explanation_settings
from ledger import Ledger
from models import ExplanationResult, LedgerSnapshot, NetBalance, Transfer
from utils import format_money, name_key

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a concise financial explainer that is explaining how a total cost is getting split "
    "amongst several participants. Explain it like you are explaining it to middle schoolers."
    " Do not explain how some participants fronted the cost and now that must be divided amongst "
    "the rest, that is simple. Focus your explanation on the algorithmic approach to settling "
    "debts and credits."
)

INSTRUCTION = (
    "Instruction to model: In under 250 words, explain concisely why each participant owes or is "
    "owed these amounts. Avoid repeating the raw tables verbatim; focus on rationale and fairness. "
    "Keep explanations simple and a tone like you are explaining it to middle schoolers."
)


def build_explanation_prompt(source: Union[Ledger, LedgerSnapshot]) -> str:
    snap = source.snapshot() if isinstance(source, Ledger) else source
    people = sorted(snap.people, key=name_key)
    expenses = snap.expenses
    nets = snap.net_balances
    transfers = snap.transfers

    lines = [
        "Trip cost settlement context",
        "Participants (alphabetical): " + ", ".join(people),
        "",
    ]

    if not expenses:
        lines.append("No expenses have been recorded. Everyone is settled.")
        lines.append("")
        lines.append("Net balances: (all 0.00)")
        lines.extend(f"- {p}: 0.00" for p in people)
        lines.append("Suggested transfers: none")
        lines.append("")
        lines.append("Instruction: Provide a brief confirmation that no settlement actions are needed.")
        return "\n".join(lines) + "\n"

    lines.append("Expenses (each shows equal-share allocation in USD):")
    for i, e in enumerate(expenses, start=1):
        shares = allocate_shares(e.amount, e.participants)
        share_parts = "; ".join(
            f"{p}:{format_money(shares[p])}" for p in sorted(e.participants, key=name_key)
        )
        lines.append(
            f"{i}. {e.description} | Amount:{format_money(e.amount)} | Payer:{e.payer} | "
            f"Participants:{','.join(e.participants)} | Shares:{share_parts}"
        )
    lines.append("")

    lines.append("Net balances (positive means the person is owed money; negative means they owe):")
    for n in sorted(nets, key=lambda b: name_key(b.name)):
        lines.append(f"- {n.name}: {format_money(n.net, signed=True)}")
    lines.append("")

    lines.append("Suggested settlement transfers (minimal set):")
    if not transfers:
        lines.append("(none – everyone already even)")
    else:
        lines.extend(f"- {t.from_person} -> {t.to_person}: {format_money(t.amount)}" for t in transfers)
    lines.append("")

    lines.append(INSTRUCTION)
    return "\n".join(lines) + "\n"


def build_algorithmic_explanation(net_balances: Sequence[NetBalance], transfers: Sequence[Transfer]) -> str:
    if not transfers:
        return "All participants are already settled; no transfers required."

    credit: Dict[str, Decimal] = {n.name: n.net for n in net_balances if n.net > 0}
    debt: Dict[str, Decimal] = {n.name: -n.net for n in net_balances if n.net < 0}
    zero = Decimal("0")

    lines = ["Step-by-step settlement rationale:"]
    for t in transfers:
        debt_before = debt.get(t.from_person, zero)
        credit_before = credit.get(t.to_person, zero)
        debt_after = max(zero, debt_before - t.amount)
        credit_after = max(zero, credit_before - t.amount)
        lines.append(
            f"- {t.from_person} pays {t.to_person} {_usd(t.amount)}. "
            f"{t.from_person} debt: {_usd(debt_before)} -> {_usd(debt_after)}; "
            f"{t.to_person} credit: {_usd(credit_before)} -> {_usd(credit_after)}."
        )
        debt[t.from_person] = debt_after
        credit[t.to_person] = credit_after

    residual_credit = [(k, v) for k, v in credit.items() if v != 0]
    residual_debt = [(k, v) for k, v in debt.items() if v != 0]
    if not residual_credit and not residual_debt:
        lines.append("All net balances reach zero after these transfers.")
    else:
        lines.append("Warning: Not all balances settled fully.")
        if residual_credit:
            lines.append("Remaining credits: " + ", ".join(f"{k}:{_usd(v)}" for k, v in residual_credit))
        if residual_debt:
            lines.append("Remaining debts: " + ", ".join(f"{k}:{_usd(v)}" for k, v in residual_debt))
    return "\n".join(lines)


def _usd(value) -> str:
    return format_money(value, symbol="$")


class ExplanationService:
    """Asks the configured model for a prose explanation, with the algorithmic one alongside"""

    def __init__(self, ledger: Ledger, settings: Optional[ExplanationSettings] = None, client=None):
        self.ledger = ledger
        self.settings = settings if settings is not None else load_explanation_settings()
        self._client = client  # lazily created unless injected

    @property
    def is_configured(self) -> bool:
        return self._client is not None or self.settings.is_configured

    def _ensure_client(self):
        if self._client is not None:
            return self._client
        if not self.settings.is_configured:
            return None
        try:
            self._client = AzureOpenAI(
                azure_endpoint=self.settings.endpoint,
                api_key=self.settings.api_key,
                api_version=self.settings.api_version,
            )
        except OpenAIError as ex:
            logger.warning("Failed to create Azure OpenAI client: %s", ex)
            return None
        return self._client

    def generate_explanation(self) -> ExplanationResult:
        snap = self.ledger.snapshot()
        prompt = build_explanation_prompt(snap)
        algorithmic = build_algorithmic_explanation(snap.net_balances, snap.transfers)

        client = self._ensure_client()
        if client is None:
            return ExplanationResult("", algorithmic, prompt, False)

        messages: List[dict] = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        try:
            response = client.chat.completions.create(
                model=self.settings.deployment,
                messages=messages,
                max_completion_tokens=self.settings.max_output_tokens,
            )
        except OpenAIError as ex:
            logger.warning("LLM explanation error: %s", ex)
            return ExplanationResult("", algorithmic, prompt, False)

        text = "".join((c.message.content or "") for c in response.choices).strip()
        if not text:
            logger.warning("LLM returned an empty explanation")
            return ExplanationResult("", algorithmic, prompt, False)
        return ExplanationResult(text, algorithmic, prompt, True)
