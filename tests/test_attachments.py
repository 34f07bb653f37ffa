import pytest

from conftest import CASE_A, FakePortalClient, routed_transport
from judicial_case_aggregator.api.portal.client import AsyncPortalClient
from judicial_case_aggregator.case_aggregation.attachments import AttachmentFetcher
from judicial_case_aggregator.shared.errors import TransportFailure
from judicial_case_aggregator.types.schemas.models import Attachment, ProceduralEvent

FILES = [Attachment(attachment_id=77, name="auto.pdf"), Attachment(attachment_id=78)]


@pytest.mark.asyncio
async def test_event_without_attachments_makes_no_call():
    client = FakePortalClient(attachments=FILES)
    event = ProceduralEvent(has_attachments=False, event_id=1, attachment_group_id=2)

    assert await AttachmentFetcher(client, CASE_A).list_attachments(event) == []
    assert client.calls == []


@pytest.mark.asyncio
async def test_lists_by_attachment_group_id():
    client = FakePortalClient(attachments=FILES)
    event = ProceduralEvent(has_attachments=True, event_id=1, attachment_group_id=2)

    files = await AttachmentFetcher(client, CASE_A).list_attachments(event)

    assert [f.attachment_id for f in files] == [77, 78]
    assert client.calls == [("attachments", CASE_A, 2)]


@pytest.mark.asyncio
async def test_falls_back_to_event_id():
    client = FakePortalClient(attachments=FILES)
    event = ProceduralEvent(has_attachments=True, event_id=1)

    await AttachmentFetcher(client, CASE_A).list_attachments(event)

    assert client.calls == [("attachments", CASE_A, 1)]


@pytest.mark.asyncio
async def test_event_without_any_key_is_empty():
    client = FakePortalClient(attachments=FILES)
    event = ProceduralEvent(has_attachments=True)
    assert await AttachmentFetcher(client, CASE_A).list_attachments(event) == []
    assert client.calls == []


@pytest.mark.asyncio
async def test_lookup_failure_is_empty_and_not_cached():
    client = FakePortalClient(attachments=FILES, errors={"attachments": TransportFailure("down")})
    fetcher = AttachmentFetcher(client, CASE_A)
    event = ProceduralEvent(has_attachments=True, attachment_group_id=2)

    assert await fetcher.list_attachments(event) == []

    del client.errors["attachments"]
    assert len(await fetcher.list_attachments(event)) == 2
    assert client.count("attachments") == 2


@pytest.mark.asyncio
async def test_download_uses_display_name(tmp_path):
    client = FakePortalClient()
    fetcher = AttachmentFetcher(client, CASE_A)

    named = await fetcher.download(FILES[0], tmp_path)
    unnamed = await fetcher.download(FILES[1], tmp_path)

    assert named == tmp_path / "auto.pdf"
    assert unnamed == tmp_path / "Documento_78.pdf"
    assert client.calls == [("download", 77, "auto.pdf"), ("download", 78, "Documento_78.pdf")]


@pytest.mark.asyncio
async def test_download_failure_propagates():
    client = FakePortalClient(errors={"download": TransportFailure("gone", status_code=410)})
    with pytest.raises(TransportFailure):
        await AttachmentFetcher(client, CASE_A).download(FILES[0])


@pytest.mark.asyncio
async def test_malformed_attachment_row_is_empty(test_config):
    transport = routed_transport(
        {"GetDocumentos": {"isSuccess": True, "lsData": [{"lsNombreArchivo": "auto.pdf"}]}}
    )
    event = ProceduralEvent(has_attachments=True, attachment_group_id=2)
    async with AsyncPortalClient(test_config, transport=transport) as client:
        assert await AttachmentFetcher(client, CASE_A).list_attachments(event) == []
