import secrets, string
ALPHABET = string.ascii_uppercase + string.digits

def generate_code(length: int = 6) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))

def normalize_code(code: str) -> str:
    return (code or "").strip().upper()

def access_code_for(prefix: str, length: int = 6) -> str:
    # The dash keeps license codes out of the join-code namespace (A-Z0-9 only)
    return f"{normalize_code(prefix)}-{generate_code(length)}"
