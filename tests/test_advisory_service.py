from langchain_core.messages import AIMessage

from kisansetu.models.conversation import Speaker
from kisansetu.models.location import (
    Coordinates,
    DeviceLocationReport,
    LocationPermission,
    LocationSource,
)
from kisansetu.models.soil_profile import SoilProfileSource
from kisansetu.services.advisory_service import (
    ADVISORY_APOLOGY_MESSAGE,
    LOCATION_REQUIRED_MESSAGE,
    AdvisoryService,
    AdvisorySessionStore,
)
from kisansetu.services.geo_resolver import ClientReportedLocation, GeoResolver
from kisansetu.services.soil_profile_service import SoilProfileResolver
from kisansetu.services.text_generation import TextGenerationClient
from tests.fakes import FakeChatModel

FIELD = Coordinates(latitude=20.0, longitude=78.0)
SOIL_JSON = '{"country": "India", "region": "Maharashtra", "soilType": "Black Cotton"}'


def _service(answer_reply=None, answer_error=None):
    soil_model = FakeChatModel(reply=SOIL_JSON)
    answer_model = FakeChatModel(reply=answer_reply, error=answer_error)
    service = AdvisoryService(
        soil_resolver=SoilProfileResolver(text_client=TextGenerationClient(chat_model=soil_model)),
        text_client=TextGenerationClient(chat_model=answer_model),
    )
    return service, soil_model, answer_model


def _geo(permission=LocationPermission.GRANTED, position=FIELD):
    report = DeviceLocationReport(location_permission=permission, device_location=position)
    return GeoResolver(ClientReportedLocation(report))


async def test_denied_location_asks_for_permission():
    service, soil_model, answer_model = _service(answer_reply="unused")
    session = AdvisorySessionStore().create(owner_id="user-1")

    exchange = await service.ask(
        session, "What should I plant?", _geo(permission=LocationPermission.DENIED)
    )

    assert exchange.assistant_turn.text == LOCATION_REQUIRED_MESSAGE
    assert exchange.location_source is None
    assert [turn.speaker for turn in session.conversation.as_history()] == [
        Speaker.USER,
        Speaker.ASSISTANT,
    ]
    assert soil_model.calls == []
    assert answer_model.calls == []


async def test_answer_is_formatted_and_logged():
    service, _, answer_model = _service(
        answer_reply=AIMessage(content="**Direct answer:** Grow cotton this kharif.")
    )
    session = AdvisorySessionStore().create(owner_id="user-1")

    exchange = await service.ask(session, "What should I plant?", _geo())

    assert exchange.assistant_turn.text == "✅ Direct answer: Grow cotton this kharif."
    assert exchange.location_source == LocationSource.DEVICE
    assert exchange.soil_profile.source == SoilProfileSource.LLM
    assert exchange.soil_profile.soil_type == "Black Cotton"
    prompt = answer_model.calls[0][0][-1].content
    assert "LOCATION: India, Maharashtra (20.0000, 78.0000)" in prompt
    assert "QUESTION: What should I plant?" in prompt
    assert not prompt.startswith("CONVERSATION:")


async def test_follow_up_carries_history_and_reuses_soil():
    service, soil_model, answer_model = _service(answer_reply="Use compost.")
    session = AdvisorySessionStore().create(owner_id="user-1")

    await service.ask(session, "First question", _geo())
    await service.ask(session, "Second question", _geo())

    prompt = answer_model.calls[1][0][-1].content
    assert prompt.startswith(
        "CONVERSATION:\nFarmer: First question\nAssistant: Use compost.\n\n"
    )
    assert "Second question" not in prompt.split("\n\n")[0]
    assert len(soil_model.calls) == 1
    assert len(session.conversation) == 4


async def test_inference_failure_becomes_apology():
    service, _, _ = _service(answer_error=ConnectionError("offline"))
    session = AdvisorySessionStore().create(owner_id="user-1")

    exchange = await service.ask(session, "When to sell?", _geo())

    assert exchange.assistant_turn.text == ADVISORY_APOLOGY_MESSAGE
    assert len(session.conversation) == 2


def test_session_store_create_get_discard():
    store = AdvisorySessionStore()
    session = store.create(owner_id="user-1", language="te")

    assert store.get(session.id) is session
    assert store.discard(session.id) is True
    assert store.get(session.id) is None
    assert store.discard(session.id) is False
