CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "XAF": "FCFA",
    # Add other currencies as needed
}

def get_currency_symbol(currency_code: str) -> str:
    """Returns the currency symbol for a given currency code."""
    return CURRENCY_SYMBOLS.get(currency_code.upper(), "")

def format_amount(amount: int, currency_code: str) -> str:
    """Formats a whole-unit amount with its symbol and thousands separators, e.g. $50,000."""
    symbol = get_currency_symbol(currency_code)
    if not symbol:
        return f"{amount:,} {currency_code.upper()}"
    return f"{symbol}{amount:,}"
