"""
Kenyan finance knowledge base used to ground advisor answers.
``search()`` returns the sections whose keywords appear in the query.
"""

MONEY_MARKET_FUNDS = {
    "overview": (
        "Money Market Funds in Kenya are collective investment schemes that pool money "
        "from many investors into short-term, high-quality debt securities. They are "
        "regulated by the Capital Markets Authority (CMA) and offer daily liquidity with "
        "returns typically above savings accounts."
    ),
    "funds": [
        {"name": "CIC Money Market Fund", "minimum": 1000, "yield": "12-14%"},
        {"name": "Zimele Money Market Fund", "minimum": 1000, "yield": "11-13%"},
        {"name": "ICEA Lion Money Market Fund", "minimum": 1000, "yield": "12-15%"},
        {"name": "Britam Money Market Fund", "minimum": 1000, "yield": "11-14%"},
    ],
    "regulations": (
        "MMFs must keep at least 20% of assets in government securities, may not hold "
        "more than 5% in a single non-government issuer and must offer daily liquidity."
    ),
    "taxation": (
        "MMF returns carry 15% withholding tax for residents and 25% for non-residents; "
        "returns from government securities inside the fund are exempt."
    ),
}

STOCK_MARKET = {
    "overview": (
        "The Nairobi Securities Exchange (NSE) is Kenya's main exchange for equities, "
        "bonds and derivatives, regulated by the Capital Markets Authority."
    ),
    "stocks": [
        {"symbol": "SCOM", "sector": "Telecommunications", "description": "Safaricom, operator of M-Pesa"},
        {"symbol": "EQTY", "sector": "Banking", "description": "Equity Group, pan-African bank"},
        {"symbol": "KCB", "sector": "Banking", "description": "Largest bank in East Africa by assets"},
        {"symbol": "EABL", "sector": "Consumer Goods", "description": "East African Breweries"},
        {"symbol": "BMBC", "sector": "Construction", "description": "Bamburi Cement"},
    ],
    "trading_hours": "9:00 AM to 3:00 PM, Monday to Friday",
}

BANKING = {
    "overview": (
        "Kenya's banking sector is regulated by the Central Bank of Kenya (CBK) and "
        "includes commercial banks, microfinance institutions and digital lenders."
    ),
    "central_bank_rate": "12.75% (2024); drives lending and deposit rates across the sector",
    "lending_rates": "Personal loans 14-20%, secured loans 12-16%",
    "deposit_rates": "Savings 3-6%, fixed deposits 8-12%, money market accounts 6-10%",
    "mobile_money": "M-Pesa has 30+ million users for payments, savings and loans",
}

GOVERNMENT_SECURITIES = {
    "treasury_bills": "91, 182 and 364-day bills; rates around 15-16%; minimum KES 100,000",
    "treasury_bonds": "2-30 year bonds; 10-year around 16.5%; minimum KES 50,000; tradable on the NSE",
    "infrastructure_bonds": "Tax-exempt IFB series with 5-25 year maturities",
}

INSURANCE = {
    "overview": (
        "Kenya's insurance sector is regulated by the Insurance Regulatory Authority (IRA) "
        "and covers life, general, health and micro-insurance."
    ),
    "life": "Jubilee, Old Mutual, Liberty Life, CIC Life; term cover from about KES 500/month",
    "health": "NHIF is mandatory for employees; private cover from AAR, Resolution, Jubilee, Madison",
    "motor": "Third party about KES 5,000/year, comprehensive KES 15,000-50,000/year",
}

INVESTMENT_TIPS = {
    "beginner": "Start with money market funds or government securities for capital preservation.",
    "intermediate": "Diversify into blue-chip stocks such as Safaricom or Equity, or balanced unit trusts.",
    "risk": "Never invest more than you can afford to lose; diversify across asset classes.",
}


def _money_market() -> str:
    funds = ", ".join(
        f"{f['name']}: {f['yield']} yield, min KES {f['minimum']}" for f in MONEY_MARKET_FUNDS["funds"]
    )
    return (
        f"MONEY MARKET FUNDS IN KENYA:\n{MONEY_MARKET_FUNDS['overview']}\n"
        f"Top MMFs: {funds}\nRegulation: {MONEY_MARKET_FUNDS['regulations']}\n"
        f"Tax: {MONEY_MARKET_FUNDS['taxation']}"
    )


def _stock_market() -> str:
    stocks = ", ".join(f"{s['symbol']} ({s['sector']}): {s['description']}" for s in STOCK_MARKET["stocks"])
    return (
        f"KENYAN STOCK MARKET (NSE):\n{STOCK_MARKET['overview']}\n"
        f"Top stocks: {stocks}\nTrading hours: {STOCK_MARKET['trading_hours']}"
    )


def _banking() -> str:
    return (
        f"KENYAN BANKING:\n{BANKING['overview']}\nCBK rate: {BANKING['central_bank_rate']}\n"
        f"Lending rates: {BANKING['lending_rates']}\nDeposit rates: {BANKING['deposit_rates']}\n"
        f"Mobile money: {BANKING['mobile_money']}"
    )


def _government_securities() -> str:
    return (
        f"GOVERNMENT SECURITIES:\nTreasury bills: {GOVERNMENT_SECURITIES['treasury_bills']}\n"
        f"Treasury bonds: {GOVERNMENT_SECURITIES['treasury_bonds']}\n"
        f"Infrastructure bonds: {GOVERNMENT_SECURITIES['infrastructure_bonds']}"
    )


def _insurance() -> str:
    return (
        f"KENYAN INSURANCE:\n{INSURANCE['overview']}\nLife: {INSURANCE['life']}\n"
        f"Health: {INSURANCE['health']}\nMotor: {INSURANCE['motor']}"
    )


def _investment_tips() -> str:
    return (
        f"INVESTMENT GUIDANCE:\nBeginner: {INVESTMENT_TIPS['beginner']}\n"
        f"Intermediate: {INVESTMENT_TIPS['intermediate']}\nRisk management: {INVESTMENT_TIPS['risk']}"
    )


# (keywords, section builder)
TOPICS = [
    (("mmf", "money market", "cic", "zimele", "icea", "britam"), _money_market),
    (("stock", "nse", "shares", "safaricom", "equity", "kcb"), _stock_market),
    (("bank", "loan", "deposit", "cbk", "interest rate", "mpesa", "m-pesa"), _banking),
    (("treasury", "bond", "bill", "government securities", "t-bill"), _government_securities),
    (("insurance", "cover", "jubilee", "nhif"), _insurance),
    (("invest", "portfolio", "beginner", "how to", "start"), _investment_tips),
]


def search(query: str) -> str:
    """Context sections relevant to ``query``, joined by blank lines; empty if none match."""
    lowered = (query or "").lower()
    sections = [build() for keywords, build in TOPICS if any(k in lowered for k in keywords)]
    return "\n\n".join(sections)
