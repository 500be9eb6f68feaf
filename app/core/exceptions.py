"""
피드백 파이프라인 예외 정의
"""


class FeedbackError(Exception):
    """피드백 처리 중 발생하는 예외의 기본 클래스"""


class NormalizationError(FeedbackError):
    """페이로드 형태로 소스를 판별할 수 없음 (항목 단위, 배치는 계속 진행)"""


class ValidationError(FeedbackError):
    """필드 값이 잘못됨 (예: 범위를 벗어난 점수)"""


class ProviderError(FeedbackError):
    """LLM 호출 실패 또는 잘못된 응답 - 규칙 기반 산정으로 대체되며 호출자에게 노출되지 않음"""


class PersistenceError(FeedbackError):
    """저장소 쓰기 실패 - errors에는 그 전까지 수집된 항목별 오류가 담김"""

    def __init__(self, message: str, errors=None):
        super().__init__(message)
        self.errors = list(errors or [])


class NotFoundError(FeedbackError):
    """조회/수정 대상이 존재하지 않음"""
