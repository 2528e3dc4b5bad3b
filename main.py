"""
CodeInbox - 验证码收件箱 API 入口

运行：
    uv run python main.py

或使用 uvicorn：
    uv run uvicorn main:app --host 0.0.0.0 --port 8000 --reload

API 文档：
    http://localhost:8000/docs
"""

import uvicorn

from infrastructure.config.settings import get_settings
from infrastructure.logging import configure_logging
from interfaces.api import create_app

settings = get_settings()
configure_logging(settings)

# 导出 FastAPI app (用于 uvicorn)
app = create_app(settings)


if __name__ == "__main__":
    print("=" * 50)
    print(f"启动 {settings.app_name}")
    print("=" * 50)
    print()
    print("API 端点:")
    print("  POST /api/admin/login     - 管理员登录")
    print("  POST /api/admin/logout    - 管理员登出")
    print("  GET  /api/admin/codes     - 最近验证码（管理员）")
    print("  GET  /api/sync/status     - 同步状态（管理员）")
    print()
    print("  GET  /api/codes?email=    - 按收件人查询验证码")
    print("  GET  /api/auth/status     - 检查邮箱连接")
    print()
    print("文档: http://localhost:8000/docs")
    print("=" * 50)

    uvicorn.run(app, host="0.0.0.0", port=8000)
