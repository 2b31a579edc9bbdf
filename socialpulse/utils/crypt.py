import os
import base64
import json
import hashlib

from cryptography.hazmat.primitives.ciphers.aead import AESGCM


def _key_passphrase() -> bytes:
    key_passphrase = os.getenv('TOKEN_ENCRYPTION_KEY') or os.getenv('SECRET_KEY')
    if not key_passphrase:
        raise ValueError("SECRET_KEY is not set in the environment!")
    return key_passphrase.encode()


def _aes_key() -> bytes:
    # AES-256 needs exactly 32 bytes; derive them so short passphrases still work
    return hashlib.sha256(_key_passphrase()).digest()


# AES Encryption
def encrypt_data(data):
    aesgcm = AESGCM(_aes_key())
    nonce = os.urandom(12)  # 96 bits is standard for GCM
    json_data = json.dumps(data).encode()
    encrypted = aesgcm.encrypt(nonce, json_data, None)
    return base64.b64encode(nonce + encrypted).decode()

def decrypt_data(encrypted_data):
    raw = base64.b64decode(encrypted_data)
    nonce = raw[:12]
    ciphertext = raw[12:]
    aesgcm = AESGCM(_aes_key())
    decrypted = aesgcm.decrypt(nonce, ciphertext, None)
    return json.loads(decrypted.decode())
