import json

from thrive_stream import (
    CompletedEvent,
    DeltaEvent,
    DoneEvent,
    FieldReader,
    StreamSession,
    ThreadCreatedEvent,
    encode_sse_event,
    extract_partial_step,
)

routine = {
    "routineTitle": "Evening Wind-Down",
    "routineDescription": "A short routine to prepare for restful sleep",
    "steps": [
        {"title": "Dim the lights", "description": "Lower the lights an hour before bed", "duration": 2},
        {"title": "Box breathing", "description": "Four counts in, hold, out, hold", "duration": 5},
    ],
    "proTips": ["Keep the same time every night"],
    "safetyNotes": ["Skip breath holds if you feel dizzy"],
}
document = json.dumps(routine)

# Stream grabado: el documento llega en trozos de 12 caracteres
frames = [encode_sse_event(ThreadCreatedEvent(thread_id="thread_demo"))]
frames += [encode_sse_event(DeltaEvent(content=document[i : i + 12])) for i in range(0, len(document), 12)]
frames.append(encode_sse_event(CompletedEvent(content=document, thread_id="thread_demo")))
frames.append(encode_sse_event(DoneEvent()))

session = StreamSession(
    on_thread_created=lambda thread_id: print(f"thread: {thread_id}"),
    on_complete=lambda content, thread_id: print(f"completed: {len(json.loads(content)['steps'])} steps"),
)
reader = FieldReader(on_field=lambda result: print(f"{result.type}: {result.data}"))
reader.attach(session)

# Paso en curso: el título ya llegó pero el objeto no está cerrado
cut = document.index("Four counts")
print("partial:", extract_partial_step(document[:cut]).data)

session.feed_text("".join(frames))
print("done:", session.is_done())
