"""공용 유틸리티 (HTTP 세션 관리)"""
