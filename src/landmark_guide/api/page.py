"""HTML page for the landmark guide."""

GUIDE_PAGE_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Landmark Guide</title>
    <style>
      body { font-family: ui-sans-serif, system-ui, sans-serif; margin: 2rem; max-width: 40rem; }
      h1 { margin-bottom: 0.5rem; }
      .row { margin-bottom: 1rem; }
      .error { color: #b00020; }
      .hidden { display: none; }
      button, label.button { padding: 0.4rem 0.8rem; margin-right: 0.5rem; cursor: pointer; }
      p.history { white-space: pre-wrap; line-height: 1.5; }
      img.photo { max-width: 100%; border-radius: 0.5rem; }
    </style>
  </head>
  <body>
    <h1>Landmark Guide</h1>
    <section id="idle">
      <p>Snap a photo of any landmark to hear its history.</p>
      <p id="error" class="error hidden"></p>
      <div class="row">
        <label class="button">Take Photo
          <input id="camera" type="file" accept="image/*" capture="environment" class="hidden" />
        </label>
        <label class="button">Upload Image
          <input id="upload" type="file" accept="image/*" class="hidden" />
        </label>
      </div>
    </section>
    <section id="analyzing" class="hidden">
      <p>Analyzing landmark...</p>
    </section>
    <section id="result" class="hidden">
      <img id="photo" alt="" class="photo" />
      <h2 id="landmark"></h2>
      <div class="row">
        <button id="toggle-audio">Play</button>
        <span id="audio-unavailable" class="hidden">Audio unavailable</span>
      </div>
      <p id="history" class="history"></p>
      <button id="reset">New photo</button>
    </section>
    <script>
      let sessionId = null;
      let audio = null;
      let photoUrl = null;

      function show(state) {
        for (const name of ['idle', 'analyzing', 'result']) {
          document.getElementById(name).classList.toggle('hidden', name !== state);
        }
      }

      function releaseAudio() {
        if (audio) {
          audio.pause();
          audio = null;
        }
      }

      function render(session) {
        const error = document.getElementById('error');
        error.textContent = session.error || '';
        error.classList.toggle('hidden', !session.error);
        if (session.state === 'result' && session.result) {
          document.getElementById('landmark').textContent = session.result.landmark;
          document.getElementById('history').textContent = session.result.history;
          const hasAudio = Boolean(session.result.audio_url);
          document.getElementById('toggle-audio').classList.toggle('hidden', !hasAudio);
          document.getElementById('audio-unavailable').classList.toggle('hidden', hasAudio);
          releaseAudio();
          if (hasAudio) {
            audio = new Audio(session.result.audio_url);
            audio.addEventListener('ended', () => {
              document.getElementById('toggle-audio').textContent = 'Play';
            });
            audio.play().then(() => {
              document.getElementById('toggle-audio').textContent = 'Pause';
            }).catch(() => {});
          }
        }
        show(session.state);
      }

      async function ensureSession() {
        if (sessionId) return sessionId;
        const res = await fetch('/sessions', { method: 'POST' });
        sessionId = (await res.json()).id;
        return sessionId;
      }

      function setPhoto(file) {
        if (photoUrl) URL.revokeObjectURL(photoUrl);
        photoUrl = file ? URL.createObjectURL(file) : null;
        document.getElementById('photo').src = photoUrl || '';
      }

      async function submit(input) {
        const file = input.files[0];
        input.value = '';
        if (!file) return;
        show('analyzing');
        try {
          const id = await ensureSession();
          const form = new FormData();
          form.append('file', file);
          const res = await fetch('/sessions/' + id + '/photo', { method: 'POST', body: form });
          const body = await res.json();
          if (!res.ok) {
            render({ state: 'idle', error: body.detail || 'Failed to analyze photo' });
            return;
          }
          setPhoto(body.state === 'result' ? file : null);
          render(body);
        } catch (err) {
          render({ state: 'idle', error: 'Failed to analyze photo' });
        }
      }

      document.getElementById('camera').addEventListener('change', (e) => submit(e.target));
      document.getElementById('upload').addEventListener('change', (e) => submit(e.target));
      document.getElementById('toggle-audio').addEventListener('click', (e) => {
        if (!audio) return;
        if (audio.paused) {
          audio.play();
          e.target.textContent = 'Pause';
        } else {
          audio.pause();
          e.target.textContent = 'Play';
        }
      });
      document.getElementById('reset').addEventListener('click', async () => {
        releaseAudio();
        setPhoto(null);
        try {
          const res = await fetch('/sessions/' + sessionId + '/reset', { method: 'POST' });
          render(await res.json());
        } catch (err) {
          render({ state: 'idle', error: null });
        }
      });
      window.addEventListener('pagehide', () => {
        if (sessionId) {
          fetch('/sessions/' + sessionId, { method: 'DELETE', keepalive: true });
          sessionId = null;
        }
      });
    </script>
  </body>
</html>
"""
