# Verschlüsselt das SMTP-Passwort für die .env (SMTP_PASSWORD_ENC + FERNET_KEY)
# Ausführen: python encrypt_secret.py <klartext-passwort> [vorhandener-fernet-key]
import getpass
import sys

from cryptography.fernet import Fernet


def encrypt(password: str, key: bytes) -> str:
    return Fernet(key).encrypt(password.encode()).decode()


def main() -> int:
    args = sys.argv[1:]
    if args:
        password = args[0]
    else:
        password = getpass.getpass("SMTP-Passwort eingeben (wird nicht angezeigt): ")
    if not password:
        print("Kein Passwort eingegeben. Abbruch.")
        return 1

    # Bestehenden Schlüssel weiterverwenden, sonst neu erzeugen (nur einmal, dann sicher ablegen!)
    key = args[1].encode() if len(args) > 1 else Fernet.generate_key()
    print(f"FERNET_KEY={key.decode()}")
    print(f"SMTP_PASSWORD_ENC={encrypt(password, key)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
