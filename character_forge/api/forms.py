import json
from typing import Any, List, Mapping, Optional, Tuple

from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import FieldList, Form, FormField, HiddenField, StringField, TextAreaField
from wtforms.validators import Length, Optional as OptionalValidator, ValidationError

from ..services.document_builder import CharacterFormData
from ..services.knowledge import parse_knowledge_list
from ..services.sentences import ensure_terminal_punctuation

# camelCase keys sent by JSON clients, mapped to form field names.
_JSON_FIELD_ALIASES = {
    "modelProvider": "model_provider",
    "voiceModel": "voice_model",
    "styleAll": "style_all",
    "styleChat": "style_chat",
    "stylePost": "style_post",
    "postExamples": "post_examples",
    "messageExamples": "message_examples",
    "currentKnowledge": "current_knowledge",
}
_LIST_FIELDS = ("clients", "adjectives", "people", "knowledge")


def editor_formdata(payload: Mapping[str, Any]) -> MultiDict:
    """Flatten a JSON editor payload into the indexed keys ``CharacterForm`` reads.

    Lists become ``clients-0``, ``message_examples-0-user`` and so on. Raises
    ``ValueError`` when a list field holds something other than a list.
    """

    formdata = MultiDict()
    for key, value in payload.items():
        field = _JSON_FIELD_ALIASES.get(key, key)
        if value is None:
            continue

        if field in _LIST_FIELDS:
            entries = [value] if isinstance(value, str) else value
            if not isinstance(entries, list):
                raise ValueError(f"{key} must be a list")
            for index, entry in enumerate(entries):
                formdata.add(f"{field}-{index}", _form_text(entry))
        elif field == "message_examples":
            if not isinstance(value, list):
                raise ValueError(f"{key} must be a list")
            for index, example in enumerate(value):
                user_text, character_text = _example_texts(key, example)
                formdata.add(f"{field}-{index}-user", user_text)
                formdata.add(f"{field}-{index}-character", character_text)
        elif field == "current_knowledge" and isinstance(value, list):
            formdata.add(field, json.dumps(value))
        elif isinstance(value, list):
            # Sentence fields may arrive already split.
            lines = (ensure_terminal_punctuation(str(entry)) for entry in value if entry is not None)
            formdata.add(field, " ".join(line for line in lines if line))
        else:
            formdata.add(field, str(value))
    return formdata


def _example_texts(key: str, example: object) -> Tuple[str, str]:
    if isinstance(example, Mapping):
        user_text, character_text = example.get("user"), example.get("character")
    elif isinstance(example, (list, tuple)):
        padded = [*example[:2], None, None]
        user_text, character_text = padded[0], padded[1]
    else:
        raise ValueError(f"{key} entries must be objects or pairs")
    return _form_text(user_text), _form_text(character_text)


def _form_text(value: object) -> str:
    return "" if value is None else str(value)


class MessageExampleForm(Form):
    user = TextAreaField("User message", validators=[OptionalValidator()])
    character = TextAreaField("Character response", validators=[OptionalValidator()])


class CharacterForm(FlaskForm):
    name = StringField("Character name", validators=[OptionalValidator(), Length(max=120)])
    model_provider = StringField("Model provider", validators=[OptionalValidator(), Length(max=120)])
    voice_model = StringField("Voice model", validators=[OptionalValidator(), Length(max=120)])
    clients = FieldList(StringField("Client", validators=[Length(max=60)]))
    bio = TextAreaField("Bio", validators=[OptionalValidator()])
    lore = TextAreaField("Lore", validators=[OptionalValidator()])
    topics = TextAreaField("Topics", validators=[OptionalValidator()])
    style_all = TextAreaField("Style (all)", validators=[OptionalValidator()])
    style_chat = TextAreaField("Style (chat)", validators=[OptionalValidator()])
    style_post = TextAreaField("Style (post)", validators=[OptionalValidator()])
    post_examples = TextAreaField("Post examples", validators=[OptionalValidator()])
    adjectives = FieldList(StringField("Adjective"))
    people = FieldList(StringField("Person"))
    knowledge = FieldList(StringField("Knowledge"))
    message_examples = FieldList(FormField(MessageExampleForm))
    current_knowledge = HiddenField(validators=[OptionalValidator()])

    def validate_current_knowledge(self, field):
        if field.data and self.parsed_current_knowledge() is None:
            raise ValidationError("Current knowledge must be a JSON list of strings.")

    def parsed_current_knowledge(self) -> Optional[List[str]]:
        return parse_knowledge_list(self.current_knowledge.data)

    def to_form_data(self) -> CharacterFormData:
        return CharacterFormData(
            name=self.name.data or "",
            clients=[entry or "" for entry in self.clients.data],
            model_provider=self.model_provider.data or "",
            voice_model=self.voice_model.data or "",
            bio=self.bio.data or "",
            lore=self.lore.data or "",
            topics=self.topics.data or "",
            style_all=self.style_all.data or "",
            style_chat=self.style_chat.data or "",
            style_post=self.style_post.data or "",
            post_examples=self.post_examples.data or "",
            adjectives=[entry or "" for entry in self.adjectives.data],
            people=[entry or "" for entry in self.people.data],
            knowledge=[entry or "" for entry in self.knowledge.data],
            message_examples=[
                (example.get("user") or "", example.get("character") or "")
                for example in self.message_examples.data
            ],
        )
