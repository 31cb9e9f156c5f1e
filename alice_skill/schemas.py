from pydantic import BaseModel, Field

# Wire format of the voice platform:
# https://yandex.ru/dev/dialogs/alice/doc/request.html
# https://yandex.ru/dev/dialogs/alice/doc/response.html

TYPE_SIMPLE_UTTERANCE = "SimpleUtterance"
PROTOCOL_VERSION = "1.0"


class SimpleUtterance(BaseModel):
    type: str
    command: str = ""


class SessionUser(BaseModel):
    user_id: str = ""


class Session(BaseModel):
    new: bool = False
    user: SessionUser = Field(default_factory=SessionUser)


class SkillRequest(BaseModel):
    request: SimpleUtterance
    session: Session = Field(default_factory=Session)
    timezone: str = ""
    version: str = ""


class ResponsePayload(BaseModel):
    text: str


class SkillResponse(BaseModel):
    response: ResponsePayload
    version: str = PROTOCOL_VERSION
