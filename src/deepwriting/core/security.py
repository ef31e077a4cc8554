"""
密码哈希与会话令牌
"""
import secrets

import bcrypt


def hash_password(password: str) -> str:
    """生成 bcrypt 加盐密码哈希"""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """校验密码，哈希格式不合法时返回 False"""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except (ValueError, AttributeError):
        return False


def generate_session_token() -> str:
    """生成不可预测的会话令牌"""
    return secrets.token_urlsafe(32)
