"""스캔 파이프라인 예외 계층.

복구 정책:
  SourceFetchError  — 쿼리 단위, 빈 결과로 강등
  ClassifierError   — 배치 단위, 재시도 후 fallback 분류
  ProtocolError     — 분류기 응답 형식 오류, ClassifierError와 동일 처리
  FatalConfigError  — 필수 자격증명 누락, 스트림 즉시 종료 (error 이벤트)
  TransportError    — 클라이언트 측 비정상 연결 종료
"""


class ScannerError(Exception):
    """모든 스캐너 예외의 기반 클래스."""


class SourceFetchError(ScannerError):
    """단일 검색 쿼리 실패."""

    def __init__(self, query: str, reason: str):
        super().__init__(f"Search failed for {query!r}: {reason}")
        self.query = query
        self.reason = reason


class ClassifierError(ScannerError):
    """원격 분류기 호출 실패 (전송 오류, 비정상 status, timeout)."""


class ProtocolError(ClassifierError):
    """분류기 응답이 스키마와 맞지 않음 (JSON 아님, 필드 누락, 결과 수 불일치)."""


class FatalConfigError(ScannerError):
    """스캔을 시작할 수 없는 설정 오류."""


class TransportError(ScannerError):
    """이벤트 스트림이 complete/error 없이 끊김."""
