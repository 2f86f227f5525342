"""
初始化集合存储
创建数据表、所有默认集合以及首次登录用的管理员账号
"""
import asyncio

from memberhub.bootstrap import prepare_store
from memberhub.core.config import get_settings
from memberhub.core.logging import configure_logging
from memberhub.infrastructure.database import dispose_engine, session_scope
from memberhub.modules.accounts import AccountService


async def init_store():
    """创建默认集合与管理员账号"""
    settings = get_settings()
    configure_logging(settings)

    await prepare_store()

    async with session_scope() as session:
        admin = await AccountService.with_session(session).get_by_username(settings.seed.admin_username)

    await dispose_engine()

    if admin is None:
        print("未找到默认管理员,accounts 集合中已有其他账号")
        return

    print("=" * 50)
    print("集合存储初始化完成!")
    print("=" * 50)
    print(f"用户名: {admin.username}")
    print(f"密码: {settings.seed.admin_password}")
    print("=" * 50)
    print("请登录后立即修改密码!")
    print("=" * 50)


if __name__ == "__main__":
    asyncio.run(init_store())
