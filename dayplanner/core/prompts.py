parse_request_prompt = """You are an expert city day planner for {city_name}. Decompose the user's request into the individual activities they want to do today.

KNOWN AREAS IN {city_name}:
{areas}

EARLIER CONVERSATION:
{history}

USER REQUEST:
{query}

EXTRACTION RULES:
1. Create one entry per distinct activity, in the order the user mentions them.
2. activity: a short description of what the user wants to do (e.g. "lunch", "coffee", "drinks", "museum visit", "meeting").
3. location: the place exactly as the user wrote it (area, street, landmark or venue). Use "nearby" when the user says nearby,
   near there or similar. Leave it empty when no place is given.
4. time:
   - an explicit clock time written as HH:MM in 24-hour format (e.g. "at 7pm" -> "19:00", "12:30" -> "12:30", "noon" -> "12:00");
   - otherwise the relative wording the user used ("afterwards", "before that", "in the afternoon", "evening");
   - otherwise leave it empty.
   Never invent a clock time that the user did not state.
5. venue_preference: style or quality words attached to the venue, copied verbatim (e.g. "quiet cafe", "rooftop bar",
   "somewhere cheap"). Leave it empty when there is no clear preference.
6. duration_minutes: only when the user states how long the activity should take.
7. start_location: where the user says they start the day, if stated.

If the request contains no activity at all, return an empty entries list.

EXAMPLE:
Request: "Lunch in Mayfair at 12, then a quiet coffee nearby, and drinks in Chelsea at 7pm"
{{
  "entries": [
    {{"activity": "lunch", "location": "Mayfair", "time": "12:00", "venue_preference": null, "duration_minutes": null}},
    {{"activity": "coffee", "location": "nearby", "time": "afterwards", "venue_preference": "quiet coffee", "duration_minutes": null}},
    {{"activity": "drinks", "location": "Chelsea", "time": "19:00", "venue_preference": null, "duration_minutes": null}}
  ],
  "start_location": null
}}

Return only the JSON object.
"""
