"""
测试模块

测试结构:
- test_*.py: 单元测试
- integration/: 基于 TestClient 的端到端测试
- fixtures.py: 上游响应构造函数与测试替身
"""
