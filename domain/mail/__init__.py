"""邮件领域模块

该模块包含邮箱同步所需的领域模型，包括：
- MailboxMessage / MessagePart 值对象
- MailboxClient 邮箱后端接口
- ContentDecoder 正文解码服务
- 邮件头解析工具
"""
