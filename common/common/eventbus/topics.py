from __future__ import annotations

from .core import Topic


# 키 발급 서브시스템이 구독하는 입주자 권한 변경 이벤트
TOPIC_ABONENT = Topic("key-server.abonent")
# 키 재발급(갱신) 요청
TOPIC_KEY_RENEWAL = Topic("key-server.key.renewal")
