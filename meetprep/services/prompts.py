"""LLM prompts for relevance classification and preparation summaries.

Prompts follow "context first, instructions after" pattern
to avoid lost-in-middle issues with long context.
"""

RELEVANCE_PROMPT = """\
TARGET MEETING: "{target_title}"{keywords_line}

CANDIDATE {category_upper} ({count}):
{candidate_list}

---

You are helping someone prepare for the target meeting by identifying
relevant context. Evaluate how relevant each of the {category} above is to
the target meeting.

Consider these factors:
- Topic similarity (keywords, themes, subject matter)
- People or teams involved
- Temporal proximity (recent items may be more relevant)
- Actionable connections (decisions, action items, follow-ups){keywords_instruction}

Rate each item on a scale of 0-100:
- 90-100: Highly relevant, directly related
- 70-89: Relevant, good supporting context
- 50-69: Somewhat relevant, tangential connection
- 30-49: Weak connection, minimal relevance
- 0-29: Not relevant

Return one score per item. Use the item's number from the list above as its
id. Keep each reasoning to one short sentence.
"""

RELEVANCE_KEYWORDS_INSTRUCTION = """
- The user specified filter keywords: "{keywords}". Items containing any of
  these keywords or closely related terms are more relevant."""

EMAIL_SUMMARY_PROMPT = """\
EMAIL:
Subject: {subject}
From: {sender}
Date: {date}

CONTENT:
{content}

---

Summarize this email for someone preparing for a related meeting.

Extract:
1. Key points (at most 5, most important first)
2. Action items mentioned
3. Overall sentiment: positive, neutral, negative, or urgent
4. A brief summary (2-3 sentences)

Echo the subject, sender and date as given. Be concise and focus on
actionable information. Use empty lists when a field has no data.
"""

MEETING_SUMMARY_PROMPT = """\
MEETING:
Subject: {subject}
Date: {date}

{content_label}:
{content}

---

Summarize this meeting for someone preparing for a related meeting.

Extract:
1. Key decisions made (at most 5)
2. Action items with owners and deadlines where stated
3. Important metrics or numbers mentioned
4. Next steps
5. A short narrative summary

Be concise and focus on actionable information. Use empty lists when a field
has no data. Only record owners and deadlines that are stated explicitly.
"""

PREP_BRIEF_PROMPT = """\
{context}

---

You are an executive meeting preparation assistant. Using the context above,
write a concise but comprehensive preparation brief for the upcoming meeting.

The brief must contain these sections:
## Context
What has been discussed recently in related meetings, emails and channels.
## Key Decisions & Actions
Important decisions made and action items from previous interactions.
## Open Issues
Unresolved topics or pending items that may come up.
## Recommended Focus
What the attendee should prioritize or prepare for.
## Quick Facts
Important metrics, dates, or data points to remember.

Format the response as Markdown: ## for section headers, **bold** for
emphasis, - for bullet points, and > for important callouts. If the context
is empty, say so briefly in the Context section instead of inventing detail.
"""
