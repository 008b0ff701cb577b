"""
Widget Registry Configuration.

Static, versioned catalog of every dashboard widget. This file is the
ONLY place where you register a new widget — the layout store, the
dispatcher and the composition engine discover it from here.

Keys (per entry):
  id              → str  : namespaced id (``<family>.<name>``). Persisted by
                           client layouts, never rename without bumping
                           ``LAYOUT_VERSION`` in the layout store.
  title / description → str : display text.
  group           → str  : one of ``WIDGET_GROUPS``.
  scope           → str  : "serrano" | "market" | "both".
  default_enabled → bool : part of the default layout.
  default_size    → str  : "sm" | "md" | "lg".
  keywords        → list[str] : search terms for the widget picker.

To add a new widget:
  1. Add an entry here.
  2. Handle the id in the loader that owns its prefix
     (``services/widgets/loaders/``).
  Done. Unknown ids degrade to an empty card, never an error.
"""

from typing import Dict, List

# ── Scopes & sizes ───────────────────────────────────────────────
SCOPES: List[str] = ["serrano", "market", "both"]
DEFAULT_SCOPE = "both"

SIZES: List[str] = ["sm", "md", "lg"]

# Grid column span per size (12-column grid)
SIZE_COLUMN_SPANS: Dict[str, int] = {"sm": 4, "md": 6, "lg": 12}

# ── Groups ───────────────────────────────────────────────────────
WIDGET_GROUPS: List[str] = [
    "overview", "serrano", "market", "compare", "finance", "performance",
]

WIDGET_GROUP_LABELS: Dict[str, str] = {
    "overview": "Visão geral",
    "serrano": "Serrano",
    "market": "Mercado",
    "compare": "Comparativos",
    "finance": "Financeiro",
    "performance": "Performance",
}

# Groups the widget picker offers under each viewing scope
SCOPE_ALLOWED_GROUPS: Dict[str, List[str]] = {
    "both": list(WIDGET_GROUPS),
    "serrano": ["overview", "serrano", "compare", "finance", "performance"],
    "market": ["overview", "market", "compare", "finance"],
}

SCOPE_LABELS: Dict[str, str] = {
    "serrano": "Serrano",
    "market": "Mercado",
    "both": "Serrano + Mercado",
}


WIDGET_REGISTRY: List[dict] = [
    # ── Overview ─────────────────────────────────────────────
    {
        "id": "overview.geo_map",
        "title": "Mapa de jogadores",
        "description": "Distribuição geográfica dos jogadores por país e estado.",
        "group": "overview",
        "scope": "both",
        "default_enabled": True,
        "default_size": "lg",
        "keywords": ["mapa", "geo", "país", "estado", "clube"],
    },
    # ── KPIs (Serrano) ───────────────────────────────────────
    {
        "id": "kpi.serrano.players_count",
        "title": "Jogadores no elenco",
        "description": "Total de jogadores cadastrados.",
        "group": "serrano",
        "scope": "serrano",
        "default_enabled": False,
        "default_size": "sm",
        "keywords": ["kpi", "jogadores", "total"],
    },
    {
        "id": "kpi.serrano.total_market_value",
        "title": "Valor de mercado total",
        "description": "Soma do valor de mercado do elenco.",
        "group": "serrano",
        "scope": "serrano",
        "default_enabled": False,
        "default_size": "sm",
        "keywords": ["kpi", "valor", "mercado", "total"],
    },
    {
        "id": "kpi.serrano.avg_age",
        "title": "Idade média",
        "description": "Idade média do elenco.",
        "group": "serrano",
        "scope": "serrano",
        "default_enabled": False,
        "default_size": "sm",
        "keywords": ["kpi", "idade", "média"],
    },
    # ── KPIs (Market) ────────────────────────────────────────
    {
        "id": "kpi.market.deals_count",
        "title": "Transferências",
        "description": "Número de transferências registradas.",
        "group": "market",
        "scope": "market",
        "default_enabled": False,
        "default_size": "sm",
        "keywords": ["kpi", "transferências", "negócios"],
    },
    {
        "id": "kpi.market.total_fee",
        "title": "Volume de transferências",
        "description": "Soma dos valores de transferência.",
        "group": "market",
        "scope": "market",
        "default_enabled": False,
        "default_size": "sm",
        "keywords": ["kpi", "valor", "volume", "total"],
    },
    # ── Serrano (roster) ─────────────────────────────────────
    {
        "id": "serrano.age_distribution",
        "title": "Distribuição por idade",
        "description": "Jogadores por faixa etária.",
        "group": "serrano",
        "scope": "serrano",
        "default_enabled": True,
        "default_size": "md",
        "keywords": ["idade", "faixa", "distribuição"],
    },
    {
        "id": "serrano.position_distribution",
        "title": "Distribuição por posição",
        "description": "Jogadores por posição.",
        "group": "serrano",
        "scope": "serrano",
        "default_enabled": True,
        "default_size": "md",
        "keywords": ["posição", "distribuição"],
    },
    {
        "id": "serrano.market_value_top_players",
        "title": "Top valor de mercado",
        "description": "Os 10 jogadores mais valiosos do elenco.",
        "group": "serrano",
        "scope": "serrano",
        "default_enabled": True,
        "default_size": "lg",
        "keywords": ["valor", "mercado", "ranking", "top"],
    },
    {
        "id": "serrano.value_over_time",
        "title": "Valor do elenco ao longo do tempo",
        "description": "Evolução do valor de mercado do elenco.",
        "group": "serrano",
        "scope": "serrano",
        "default_enabled": False,
        "default_size": "lg",
        "keywords": ["valor", "tempo", "evolução"],
    },
    {
        "id": "serrano.age_vs_value_scatter",
        "title": "Idade x valor de mercado",
        "description": "Dispersão entre idade e valor de mercado.",
        "group": "serrano",
        "scope": "serrano",
        "default_enabled": False,
        "default_size": "lg",
        "keywords": ["idade", "valor", "dispersão"],
    },
    {
        "id": "serrano.representation_ranking",
        "title": "Ranking de agências",
        "description": "Agências com mais jogadores representados.",
        "group": "serrano",
        "scope": "serrano",
        "default_enabled": False,
        "default_size": "md",
        "keywords": ["agência", "representação", "empresário", "ranking"],
    },
    # ── Market (transfers) ───────────────────────────────────
    {
        "id": "market.deals_by_month",
        "title": "Transferências por mês",
        "description": "Quantidade de transferências ao longo do tempo.",
        "group": "market",
        "scope": "market",
        "default_enabled": False,
        "default_size": "md",
        "keywords": ["transferências", "mês", "tempo"],
    },
    {
        "id": "market.fee_by_month",
        "title": "Volume financeiro por mês",
        "description": "Soma dos valores de transferência por mês.",
        "group": "market",
        "scope": "market",
        "default_enabled": False,
        "default_size": "md",
        "keywords": ["valor", "volume", "mês"],
    },
    {
        "id": "market.fee_distribution",
        "title": "Distribuição de valores",
        "description": "Transferências por faixa de valor.",
        "group": "market",
        "scope": "market",
        "default_enabled": False,
        "default_size": "md",
        "keywords": ["valor", "faixa", "distribuição"],
    },
    {
        "id": "market.top_buyers_sellers",
        "title": "Maiores compradores e vendedores",
        "description": "Clubes que mais gastaram e mais arrecadaram.",
        "group": "market",
        "scope": "market",
        "default_enabled": False,
        "default_size": "lg",
        "keywords": ["clubes", "compradores", "vendedores", "ranking"],
    },
    {
        "id": "market.top_leagues_countries",
        "title": "Principais destinos",
        "description": "Países de destino com mais transferências.",
        "group": "market",
        "scope": "market",
        "default_enabled": False,
        "default_size": "md",
        "keywords": ["países", "ligas", "destino", "ranking"],
    },
    {
        "id": "market.age_vs_fee_scatter",
        "title": "Idade x valor de transferência",
        "description": "Dispersão entre idade do atleta e valor pago.",
        "group": "market",
        "scope": "market",
        "default_enabled": False,
        "default_size": "lg",
        "keywords": ["idade", "valor", "dispersão"],
    },
    {
        "id": "market.position_avg_fee",
        "title": "Valor médio por posição",
        "description": "Ticket médio e número de negócios por posição.",
        "group": "market",
        "scope": "market",
        "default_enabled": False,
        "default_size": "md",
        "keywords": ["posição", "valor", "médio", "ticket"],
    },
    # ── Compare ──────────────────────────────────────────────
    {
        "id": "compare.position_share_serrano_vs_market",
        "title": "Posições: Serrano x mercado",
        "description": "Participação de cada posição no elenco e no mercado.",
        "group": "compare",
        "scope": "both",
        "default_enabled": False,
        "default_size": "lg",
        "keywords": ["comparativo", "posição", "mercado"],
    },
    {
        "id": "compare.avg_age_by_position",
        "title": "Idade média por posição",
        "description": "Idade média por posição no elenco e no mercado.",
        "group": "compare",
        "scope": "both",
        "default_enabled": False,
        "default_size": "lg",
        "keywords": ["comparativo", "idade", "posição"],
    },
]
