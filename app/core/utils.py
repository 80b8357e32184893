import re


def mask_cpf_cnpj(doc: str) -> str:
    """
    Masks CPF or CNPJ for logs and audit records.
    CPF: ***.123.456-**
    CNPJ: **.***.123/0001-**
    """
    if not doc:
        return ""

    clean_doc = re.sub(r'\D', '', doc)

    if len(clean_doc) == 11:  # CPF
        return f"***.{clean_doc[3:6]}.{clean_doc[6:9]}-**"
    elif len(clean_doc) == 14:  # CNPJ
        return f"**.***.{clean_doc[5:8]}/{clean_doc[8:12]}-**"
    else:
        return mask_sensitive_data(doc)


def mask_sensitive_data(value: str, mask_char: str = "*", visible_chars: int = 4) -> str:
    """
    Sanitizes sensitive information for audit logs, preserving only the trailing characters for identification purposes.
    """
    if not value or len(value) <= visible_chars:
        return mask_char * len(value) if value else ""

    return mask_char * (len(value) - visible_chars) + value[-visible_chars:]


def mask_pix_key(key: str) -> str:
    """Masks a Pix key of any type. Emails keep the domain visible."""
    if not key:
        return ""
    if "@" in key:
        user, _, domain = key.partition("@")
        return f"{user[:2]}***@{domain}"
    return mask_cpf_cnpj(key)
