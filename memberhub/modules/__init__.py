"""功能模块聚合与公共导出。"""
