"""版本信息管理"""

__version__ = "0.1.0"

VERSION_INFO = {
    'major': 0,
    'minor': 1,
    'patch': 0,
    'status': 'alpha'  # dev, alpha, beta, rc, stable
}

def get_version_string():
    """获取版本字符串"""
    return f"{VERSION_INFO['major']}.{VERSION_INFO['minor']}.{VERSION_INFO['patch']}"
