"""
Configuration and data loading for TripSplit
"""
from __future__ import annotations
import json
import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from ledger import Ledger
from utils import app_dir, format_money

DEFAULT_API_VERSION = "2024-10-21"


@dataclass
class ExplanationSettings:
    """Connection settings for the Azure OpenAI text-generation backend"""
    endpoint: Optional[str] = None  # e.g. https://your-resource.openai.azure.com
    api_key: Optional[str] = None
    deployment: Optional[str] = None  # deployment (model) name
    api_version: str = DEFAULT_API_VERSION
    max_output_tokens: int = 1000

    @property
    def is_configured(self) -> bool:
        return all(v and v.strip() for v in (self.endpoint, self.api_key, self.deployment))


def _load_json(path: str) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return {}


def load_people(path: str) -> List[str]:
    """Load people list from JSON file"""
    return list(_load_json(path).get("people", []))


def get_default_ledger(base: Optional[str] = None) -> Ledger:
    """Create a ledger seeded with the people from people.json"""
    ledger = Ledger()
    ledger.import_people(load_people(os.path.join(app_dir(base), "people.json")))
    return ledger


def load_explanation_settings(
    environ: Optional[Mapping[str, str]] = None,
    path: Optional[str] = None
) -> ExplanationSettings:
    """
    Read text-generation settings. Environment variables win; the
    "azure_openai" object of settings.json fills in whatever is missing.
    """
    env = os.environ if environ is None else environ
    if path is None:
        path = os.path.join(app_dir(), "settings.json")
    section = _load_json(path).get("azure_openai", {})

    def pick(var: str, key: str) -> Optional[str]:
        return env.get(var) or section.get(key)

    return ExplanationSettings(
        endpoint=pick("AZURE_OPENAI_ENDPOINT", "endpoint"),
        api_key=pick("AZURE_OPENAI_KEY", "key"),
        deployment=pick("AZURE_OPENAI_DEPLOYMENT", "deployment"),
        api_version=pick("AZURE_OPENAI_API_VERSION", "api_version") or DEFAULT_API_VERSION,
        max_output_tokens=int(section.get("max_output_tokens", 1000)),
    )


def ledger_to_dict(ledger: Ledger) -> dict:
    """Convert the ledger's read projections to a JSON-ready dictionary"""
    return {
        "people": ledger.get_people(),
        "expenses": [
            {
                "id": e.id,
                "description": e.description,
                "amount": format_money(e.amount),
                "payer": e.payer,
                "participants": list(e.participants),
            } for e in ledger.get_expenses()
        ],
        "net_balances": [{"name": b.name, "net": format_money(b.net)} for b in ledger.get_net_balances()],
        "totals_spent": [{"name": t.name, "spent": format_money(t.spent)} for t in ledger.get_totals_spent()],
        "transfers": [
            {"from": t.from_person, "to": t.to_person, "amount": format_money(t.amount)}
            for t in ledger.settle_up()
        ],
    }
