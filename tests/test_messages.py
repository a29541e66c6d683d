import os
import sys

import pytest
from pydantic import ValidationError

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from courierly.modules.session import (
    MessageKind,
    SendAudioRequest,
    SendContactRequest,
    SendDocumentRequest,
    SendImageRequest,
    SendLocationRequest,
    SendPollRequest,
    SendReactionRequest,
    SendTextRequest,
    SendVideoRequest,
)


def test_text_payload():
    request = SendTextRequest(text="hello")

    assert request.kind is MessageKind.TEXT
    assert request.jid is None
    assert request.to_content() == {"text": "hello"}


def test_empty_jid_means_default_recipient():
    assert SendTextRequest(text="hi", jid="").jid is None
    assert SendTextRequest(text="hi", jid=None).jid is None
    assert SendTextRequest(text="hi", jid="1@s.whatsapp.net").jid == "1@s.whatsapp.net"


def test_image_defaults():
    request = SendImageRequest.model_validate({"imageUrl": "https://example.com/a.jpg"})

    assert request.to_content() == {
        "image": {"url": "https://example.com/a.jpg"},
        "caption": "",
    }


def test_image_null_caption_takes_default():
    request = SendImageRequest.model_validate({"imageUrl": "https://x/a.jpg", "caption": None})

    assert request.caption == ""


def test_video_payload():
    request = SendVideoRequest.model_validate(
        {"videoUrl": "https://x/v.mp4", "caption": "clip", "videoNote": True}
    )

    assert request.to_content() == {
        "video": {"url": "https://x/v.mp4"},
        "caption": "clip",
        "gifPlayback": True,
    }
    assert SendVideoRequest(video_url="https://x/v.mp4").to_content()["gifPlayback"] is False


def test_audio_default_mimetype():
    request = SendAudioRequest.model_validate({"audioUrl": "https://x/a.mp3"})

    assert request.to_content() == {"audio": {"url": "https://x/a.mp3"}, "mimetype": "audio/mpeg"}


def test_audio_empty_mimetype_takes_default():
    request = SendAudioRequest.model_validate({"audioUrl": "https://x/a.ogg", "mimetype": ""})

    assert request.mimetype == "audio/mpeg"


def test_document_defaults():
    request = SendDocumentRequest.model_validate({"documentUrl": "https://x/d"})

    assert request.to_content() == {
        "document": {"url": "https://x/d"},
        "mimetype": "application/pdf",
        "fileName": "document",
    }


def test_document_custom_fields():
    request = SendDocumentRequest.model_validate(
        {"documentUrl": "https://x/r.csv", "mimetype": "text/csv", "filename": "report.csv"}
    )

    content = request.to_content()
    assert content["mimetype"] == "text/csv"
    assert content["fileName"] == "report.csv"


def test_location_payload():
    request = SendLocationRequest.model_validate({"latitude": 52.37, "longitude": 4.89})

    assert request.to_content() == {
        "location": {
            "degreesLatitude": 52.37,
            "degreesLongitude": 4.89,
            "name": "",
            "address": "",
        }
    }


def test_location_requires_coordinates():
    with pytest.raises(ValidationError):
        SendLocationRequest.model_validate({"latitude": 52.37})


def test_contact_payload():
    vcard = "BEGIN:VCARD\nVERSION:3.0\nFN:Jane\nEND:VCARD"
    request = SendContactRequest.model_validate({"vcard": vcard})

    assert request.to_content() == {
        "contacts": {"displayName": "Contact", "contacts": [{"vcard": vcard}]}
    }


def test_reaction_payload():
    request = SendReactionRequest.model_validate(
        {
            "reaction": "👍",
            "key": {"remoteJid": "1@s.whatsapp.net", "fromMe": False, "id": "ABC123"},
        }
    )

    assert request.kind is MessageKind.REACTION
    assert request.to_content() == {
        "react": {
            "text": "👍",
            "key": {"remoteJid": "1@s.whatsapp.net", "fromMe": False, "id": "ABC123"},
        }
    }


def test_empty_reaction_kept():
    # Removes an earlier reaction
    request = SendReactionRequest.model_validate({"reaction": "", "key": {"id": "ABC123"}})

    assert request.to_content()["react"]["text"] == ""


def test_reaction_requires_key():
    with pytest.raises(ValidationError):
        SendReactionRequest.model_validate({"reaction": "👍"})


def test_poll_defaults():
    request = SendPollRequest.model_validate({"pollName": "Lunch?", "pollValues": ["Yes", "No"]})

    assert request.to_content() == {
        "poll": {
            "name": "Lunch?",
            "values": ["Yes", "No"],
            "toAnnouncementGroup": False,
        }
    }


def test_poll_options():
    request = SendPollRequest.model_validate(
        {
            "pollName": "Pick",
            "pollValues": ["a", "b", "c"],
            "selectableCount": 2,
            "toAnnouncementGroup": True,
        }
    )

    poll = request.to_content()["poll"]
    assert poll["selectableCount"] == 2
    assert poll["toAnnouncementGroup"] is True


def test_missing_required_field():
    with pytest.raises(ValidationError):
        SendTextRequest.model_validate({"jid": "1@s.whatsapp.net"})
