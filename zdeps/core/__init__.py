"""核心模块 - 版本模型 / 校验和 / 缓存 / 解析 / 拉取 / 一致性检查

拆分说明:
- semver.py: 语义化版本与约束
- checksum.py: 文件 / 目录树校验和
- cache.py: 持久化拉取缓存
- resolver.py: 选择器 → 具体引用
- fetcher.py: 拉取编排
- sync.py: 清单 / 锁文件一致性检查
- installer.py: 安装与移除
- updates.py: 可用更新检查
"""
