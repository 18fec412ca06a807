"""Versioned prompt templates for the extractor and the narrator."""

from dataclasses import dataclass

from langchain_core.prompts import ChatPromptTemplate

from lore_graph.prompts.metadata import PromptMetadata, sha256_hex


@dataclass(frozen=True)
class PromptSpec:
    """A prompt template plus the identity recorded in the usage log."""

    prompt_id: str
    version: str
    agent_role: str
    system: str
    human: str

    def to_chat_prompt(self) -> ChatPromptTemplate:
        return ChatPromptTemplate.from_messages(
            [("system", self.system), ("human", self.human)]
        )

    def metadata(self) -> PromptMetadata:
        return PromptMetadata(
            prompt_id=self.prompt_id,
            version=self.version,
            agent_role=self.agent_role,
            hash=sha256_hex(self.system + "\n" + self.human),
        )


EXTRACTION_SYSTEM = """You are an entity extraction system for a fantasy RPG world knowledge graph.

Extract all entities and relationships from the text. Return ONLY valid JSON with no additional text.

Required JSON format:
{{
  "entities": [
    {{
      "type": "Faction" | "Character" | "Location" | "Resource" | "Event",
      "name": "canonical name",
      "mentions": ["alias1", "alias2"],
      "attributes": {{ "key": "value" }},
      "confidence": 0.0-1.0
    }}
  ],
  "relationships": [
    {{
      "from": "entity name",
      "to": "entity name",
      "type": "relationship description",
      "evidence": "supporting text passage",
      "confidence": 0.0-1.0
    }}
  ]
}}

Entity types:
- Faction: Political groups, organizations, military forces (attributes: alignment ALLY|NEUTRAL|RIVAL|UNKNOWN, leader_name, core_motivation)
- Character: Named individuals (attributes: role, faction_affiliation)
- Location: Cities, regions, strongholds (attributes: type CITY|STRONGHOLD|OUTPOST|REGION|CAPITAL|WILDERNESS, controlling_faction)
- Resource: Strategic assets (attributes: type MILITARY|ECONOMIC|TECHNOLOGICAL|CULTURAL|INTELLIGENCE, controlling_faction, strategic_value 0-100)
- Event: Battles, treaties, discoveries (attributes: type BATTLE|TREATY|DISCOVERY|UPRISING|DIPLOMACY|CATASTROPHE, date in ISO 8601)

Relationships MUST reference names from your entities list."""

EXTRACTION_HUMAN = """Text to analyze:
{text}

Extract all entities and relationships:"""

NARRATOR_SYSTEM = """You are the Narrator of a persistent fantasy world. You write new lore that answers the user's question while staying strictly consistent with the established facts you are given. Never change a stored fact; if the question invites a change, explain it in-world without contradicting the record."""

NARRATOR_HUMAN = """User Query: {query}

Retrieved Context:
{context}
{feedback}
Generate a response that:
1. Answers the user's query based on the retrieved context
2. Maintains consistency with existing lore
3. Extracts any new entities and relationships mentioned
4. Provides structured output in JSON format

Output format:
{{
  "text": "The main response text addressing the query",
  "entities": [
    {{
      "type": "Faction|Character|Location|Resource|Event",
      "name": "Entity name",
      "properties": {{ "key": "value" }}
    }}
  ],
  "relationships": [
    {{
      "type": "RELATIONSHIP_TYPE",
      "from": "entity1_name",
      "to": "entity2_name"
    }}
  ],
  "confidence": 0.85,
  "reasoning": "Brief explanation of how this fits with existing lore"
}}"""

EXTRACTION_PROMPT = PromptSpec(
    prompt_id="extractor",
    version="1.0.0",
    agent_role="extractor",
    system=EXTRACTION_SYSTEM,
    human=EXTRACTION_HUMAN,
)

NARRATOR_PROMPT = PromptSpec(
    prompt_id="narrator",
    version="1.0.0",
    agent_role="narrator",
    system=NARRATOR_SYSTEM,
    human=NARRATOR_HUMAN,
)
