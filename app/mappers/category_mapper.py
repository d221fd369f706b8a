"""
app/mappers/category_mapper.py

Resolution of a ledger category for imported statement rows.

Order of precedence:

1. the highest-priority user :class:`CategoryRuleInput` whose wildcard
   pattern matches the description;
2. the statement's own category column, mapped through
   :data:`DEFAULT_CATEGORY_ALIASES` (exact match first, then substring);
3. ``other``.
"""

from __future__ import annotations

import re
from typing import Sequence

from app.domain.transaction_import import CategoryAssignment, CategoryRuleInput
from app.validators.transaction_validator import normalize_text
from kpi.types import TransactionCategory

_MARKETING = CategoryAssignment(TransactionCategory.MARKETING, True)
_SALES = CategoryAssignment(TransactionCategory.SALES, True)
_INFRASTRUCTURE = CategoryAssignment(TransactionCategory.INFRASTRUCTURE, False)
_TOOLS = CategoryAssignment(TransactionCategory.TOOLS, False)
_PAYROLL = CategoryAssignment(TransactionCategory.PAYROLL, False)
_TAXES = CategoryAssignment(TransactionCategory.TAXES, False)
_ADMINISTRATIVE = CategoryAssignment(TransactionCategory.ADMINISTRATIVE, False)
_OTHER = CategoryAssignment(TransactionCategory.OTHER, False)

# Statement category labels (Portuguese and English) to ledger categories.
DEFAULT_CATEGORY_ALIASES: dict[str, CategoryAssignment] = {
    "marketing": _MARKETING,
    "ads": _MARKETING,
    "anuncios": _MARKETING,
    "publicidade": _MARKETING,
    "meta ads": _MARKETING,
    "google ads": _MARKETING,
    "trafego pago": _MARKETING,
    "trafego": _MARKETING,
    "vendas": _SALES,
    "sales": _SALES,
    "comercial": _SALES,
    "comissao": _SALES,
    "comissoes": _SALES,
    "infraestrutura": _INFRASTRUCTURE,
    "infrastructure": _INFRASTRUCTURE,
    "infra": _INFRASTRUCTURE,
    "servidor": _INFRASTRUCTURE,
    "servidores": _INFRASTRUCTURE,
    "hospedagem": _INFRASTRUCTURE,
    "cloud": _INFRASTRUCTURE,
    "aws": _INFRASTRUCTURE,
    "ferramentas": _TOOLS,
    "ferramenta": _TOOLS,
    "tools": _TOOLS,
    "software": _TOOLS,
    "softwares": _TOOLS,
    "saas": _TOOLS,
    "assinatura": _TOOLS,
    "assinaturas": _TOOLS,
    "mensalidade": _TOOLS,
    "automacao": _TOOLS,
    "integracao": _TOOLS,
    "dominio": _TOOLS,
    "folha": _PAYROLL,
    "folha de pagamento": _PAYROLL,
    "payroll": _PAYROLL,
    "salario": _PAYROLL,
    "salarios": _PAYROLL,
    "funcionarios": _PAYROLL,
    "pessoal": _PAYROLL,
    "rh": _PAYROLL,
    "impostos": _TAXES,
    "imposto": _TAXES,
    "taxes": _TAXES,
    "taxas": _TAXES,
    "taxa": _TAXES,
    "tributos": _TAXES,
    "administrativo": _ADMINISTRATIVE,
    "administrative": _ADMINISTRATIVE,
    "admin": _ADMINISTRATIVE,
    "escritorio": _ADMINISTRATIVE,
    "aluguel": _ADMINISTRATIVE,
    "contador": _ADMINISTRATIVE,
    "contabilidade": _ADMINISTRATIVE,
    "receita": CategoryAssignment(TransactionCategory.OTHER_REVENUE, False),
    "receitas": CategoryAssignment(TransactionCategory.OTHER_REVENUE, False),
    "faturamento": CategoryAssignment(TransactionCategory.SUBSCRIPTION, False),
    "servico": CategoryAssignment(TransactionCategory.SERVICE, False),
    "servicos": CategoryAssignment(TransactionCategory.SERVICE, False),
    "consultoria": CategoryAssignment(TransactionCategory.CONSULTING, False),
    "consulting": CategoryAssignment(TransactionCategory.CONSULTING, False),
    "outros": _OTHER,
    "outro": _OTHER,
    "other": _OTHER,
    "diversos": _OTHER,
}


def wildcard_to_regex(pattern: str) -> re.Pattern[str]:
    """``*`` matches any run, ``?`` one character; everything else is literal."""
    parts = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.IGNORECASE)


class CategoryMapper:
    """
    Assigns ``(category, is_cac)`` to imported rows.
    """

    def __init__(self, aliases: dict[str, CategoryAssignment] | None = None) -> None:
        self._aliases = aliases if aliases is not None else DEFAULT_CATEGORY_ALIASES

    def apply_rules(
        self,
        description: str,
        rules: Sequence[CategoryRuleInput],
    ) -> CategoryAssignment | None:
        for rule in sorted(rules, key=lambda r: r.priority, reverse=True):
            if wildcard_to_regex(rule.pattern).search(description):
                return CategoryAssignment(rule.category, rule.is_cac)
        return None

    def map_statement_category(self, value: str) -> CategoryAssignment:
        normalized = normalize_text(value)
        if not normalized:
            return _OTHER
        exact = self._aliases.get(normalized)
        if exact is not None:
            return exact
        for alias, assignment in self._aliases.items():
            if alias in normalized or normalized in alias:
                return assignment
        return _OTHER

    def resolve(
        self,
        description: str,
        statement_category: str | None,
        rules: Sequence[CategoryRuleInput],
    ) -> CategoryAssignment:
        matched = self.apply_rules(description, rules)
        if matched is not None:
            return matched
        if statement_category:
            return self.map_statement_category(statement_category)
        return _OTHER
