"""
Sanitizers for contact form input.

`escape` neutralizes markup before text is stored or echoed back in an email,
and `normalize_email` folds an address to the canonical form used for storage.
"""

from typing import Optional

from email_validator import validate_email, EmailNotValidError

# Whitespace removed by a form-field trim, including the byte order mark
TRIM_CHARS = (
    " \t\n\v\f\r\u00a0\u1680\u2028\u2029\u202f\u205f\u3000\ufeff"
    + "".join(chr(c) for c in range(0x2000, 0x200b))
)

# Reserved TLDs that email-validator refuses outright even though the
# address is syntactically fine
SPECIAL_USE_TLDS = {"arpa", "invalid", "local", "localhost", "onion", "test"}

# Characters that are significant in HTML and inline scripts
_ESCAPE_TABLE = str.maketrans({
    "&": "&amp;",
    '"': "&quot;",
    "'": "&#x27;",
    "<": "&lt;",
    ">": "&gt;",
    "/": "&#x2F;",
    "\\": "&#x5C;",
    "`": "&#96;",
})

GMAIL_DOMAINS = {"gmail.com", "googlemail.com"}

ICLOUD_DOMAINS = {"icloud.com", "me.com"}

OUTLOOK_DOMAINS = {
    "hotmail.at", "hotmail.be", "hotmail.ca", "hotmail.cl", "hotmail.co.il",
    "hotmail.co.nz", "hotmail.co.th", "hotmail.co.uk", "hotmail.com",
    "hotmail.com.ar", "hotmail.com.au", "hotmail.com.br", "hotmail.com.gr",
    "hotmail.com.mx", "hotmail.com.pe", "hotmail.com.tr", "hotmail.com.vn",
    "hotmail.cz", "hotmail.de", "hotmail.dk", "hotmail.es", "hotmail.fr",
    "hotmail.hu", "hotmail.id", "hotmail.ie", "hotmail.in", "hotmail.it",
    "hotmail.jp", "hotmail.kr", "hotmail.lv", "hotmail.my", "hotmail.ph",
    "hotmail.pt", "hotmail.sa", "hotmail.sg", "hotmail.sk",
    "live.be", "live.co.uk", "live.com", "live.com.ar", "live.com.mx",
    "live.de", "live.es", "live.eu", "live.fr", "live.it", "live.nl",
    "msn.com", "outlook.at", "outlook.be", "outlook.cl", "outlook.co.il",
    "outlook.co.nz", "outlook.co.th", "outlook.com", "outlook.com.ar",
    "outlook.com.au", "outlook.com.br", "outlook.com.gr", "outlook.com.pe",
    "outlook.com.tr", "outlook.com.vn", "outlook.cz", "outlook.de",
    "outlook.dk", "outlook.es", "outlook.fr", "outlook.hu", "outlook.id",
    "outlook.ie", "outlook.in", "outlook.it", "outlook.jp", "outlook.kr",
    "outlook.lv", "outlook.my", "outlook.ph", "outlook.pt", "outlook.sa",
    "outlook.sg", "outlook.sk", "passport.com",
}

YAHOO_DOMAINS = {
    "rocketmail.com", "yahoo.ca", "yahoo.co.uk", "yahoo.com", "yahoo.de",
    "yahoo.fr", "yahoo.in", "yahoo.it", "ymail.com",
}

YANDEX_DOMAINS = {
    "yandex.ru", "yandex.ua", "yandex.kz", "yandex.com", "yandex.by", "ya.ru",
}


def trim(value: str) -> str:
    return value.strip(TRIM_CHARS)


def escape(value: str) -> str:
    """Replace HTML-significant characters with their entities."""
    return value.translate(_ESCAPE_TABLE)


def is_email(value: str) -> bool:
    """
    Syntax-only email check.

    The domain must contain a dot and end in an alphabetic (or punycode)
    top-level domain. Reserved TLDs such as .local are accepted; their
    syntax is checked as if they were an ordinary TLD.
    """
    local, at, domain = value.rpartition("@")
    if not at or "." not in domain:
        return False

    labels = domain.split(".")
    tld = labels[-1].lower()
    if not ((len(tld) >= 2 and tld.isalpha()) or tld.startswith("xn--")):
        return False
    if tld in SPECIAL_USE_TLDS:
        value = f"{local}@{'.'.join(labels[:-1] + ['com'])}"

    try:
        validate_email(value, check_deliverability=False, globally_deliverable=False)
    except EmailNotValidError:
        return False
    return True


def normalize_email(email: str) -> Optional[str]:
    """
    Canonicalize an already validated email address.

    The whole address is lowercased and provider-specific aliases are folded:
    Gmail drops dots and `+tags` (and googlemail.com becomes gmail.com),
    iCloud and Microsoft consumer domains drop `+tags`, Yahoo drops `-tags`
    and Yandex domains collapse to yandex.ru.

    Args:
        email (str): Address that passed syntax validation

    Returns:
        str: The normalized address, or None when nothing is left of the
        local part once aliases are removed (e.g. "+news@gmail.com")
    """
    local, _, domain = trim(email).rpartition("@")
    local = local.lower()
    domain = domain.lower()

    if domain in GMAIL_DOMAINS:
        local = local.split("+")[0].replace(".", "")
        if not local:
            return None
        domain = "gmail.com"
    elif domain in ICLOUD_DOMAINS or domain in OUTLOOK_DOMAINS:
        local = local.split("+")[0]
        if not local:
            return None
    elif domain in YAHOO_DOMAINS:
        # Only the last -tag is an alias; earlier dashes belong to the mailbox
        components = local.split("-")
        local = "-".join(components[:-1]) if len(components) > 1 else local
        if not local:
            return None
    elif domain in YANDEX_DOMAINS:
        domain = "yandex.ru"

    return f"{local}@{domain}"
