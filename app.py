import io
import logging

from flask import Flask, abort, jsonify, request, send_file

import config
from encoder import EncodeError
from generation import ImageGenerator
from prompts import IMAGE_TYPES, STYLE_OPTIONS
from view_state import SubmitNotAllowed, ViewState

ERROR_STATUS = {
    "missing-input": 400,
    "no-image-produced": 502,
    "transport": 502,
}


def create_app(generator=None, state=None):
    """Build the Flask app around a single ViewState and ImageGenerator."""
    app = Flask(__name__)
    app.config["VIEW_STATE"] = state = state or ViewState()
    app.config["GENERATOR"] = generator = generator or ImageGenerator(
        api_key=config.GEMINI_API_KEY, model=config.IMAGE_MODEL,
    )

    def state_response(status=200, error=None):
        body = state.to_dict()
        if error:
            body["error"] = error
        return jsonify(body), status

    @app.route("/")
    def index():
        return HTML_PAGE

    @app.route("/api/options")
    def options():
        return jsonify({
            "image_types": IMAGE_TYPES,
            "styles": STYLE_OPTIONS,
            "accept": config.ACCEPTED_FILE_TYPES,
        })

    @app.route("/api/state")
    def get_state():
        return state_response()

    @app.route("/api/image", methods=["POST"])
    def upload_image():
        upload = request.files.get("image")
        if upload is None or not upload.filename:
            return state_response(400, "No image provided")

        try:
            image = state.select_image(upload)
        except EncodeError:
            return state_response(422, state.status_message)

        app.logger.info("Selected %s (%s)", image.filename, image.mime_type)
        return state_response()

    @app.route("/api/generate", methods=["POST"])
    def generate():
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return state_response(400, "Request body must be a JSON object")

        image_type = data.get("image_type", state.image_type)
        style = data.get("style", state.style) or ""
        instructions = data.get("instructions") or ""
        if not isinstance(instructions, str):
            return state_response(400, "Instructions must be text")
        instructions = instructions.strip()

        if image_type not in IMAGE_TYPES:
            return state_response(400, f"Unknown image type: {image_type}")
        if style and style not in STYLE_OPTIONS:
            return state_response(400, f"Unknown style: {style}")

        if state.is_loading:
            return state_response(409, "A generation request is already in progress.")

        state.update_form(image_type=image_type, style=style, instructions=instructions)
        try:
            state.submit(generator)
        except SubmitNotAllowed as e:
            return state_response(409, str(e))

        if state.is_error:
            app.logger.warning("Generation failed (%s): %s", state.error_kind, state.status_message)
            return state_response(ERROR_STATUS.get(state.error_kind, 500), state.status_message)
        return state_response()

    @app.route("/api/change-style", methods=["POST"])
    def change_style():
        state.change_style()
        return state_response()

    @app.route("/api/reset", methods=["POST"])
    def reset():
        state.reset()
        return state_response()

    @app.route("/api/download")
    def download():
        export = state.download()
        if export is None:
            return state_response(404, "No generated image to download")

        filename, data, mime_type = export
        return send_file(
            io.BytesIO(data),
            mimetype=mime_type,
            as_attachment=True,
            download_name=filename,
        )

    @app.route("/preview/<token>")
    def preview(token):
        image = state.preview(token)
        if image is None:
            abort(404)
        return send_file(io.BytesIO(image.data), mimetype=image.mime_type)

    return app


HTML_PAGE = r"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>AKKOR KARIKATUR</title>
<style>
  *, *::before, *::after { box-sizing: border-box; margin: 0; padding: 0; }

  body {
    font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
    background: #0f0f0f;
    color: #e0e0e0;
    min-height: 100vh;
  }

  .app-container {
    max-width: 560px;
    margin: 0 auto;
    padding: 32px 20px 80px;
    display: flex;
    flex-direction: column;
    gap: 20px;
  }

  header h1 { font-size: 1.5rem; color: #fff; }
  header p { font-size: 0.85rem; color: #888; margin-top: 4px; }

  .card {
    background: #1a1a1a;
    border: 1px solid #2a2a2a;
    border-radius: 10px;
    padding: 20px;
  }
  .hidden { display: none !important; }

  .form-container { display: flex; flex-direction: column; gap: 16px; }
  .form-group { display: flex; flex-direction: column; gap: 6px; }
  .form-group > label { font-size: 0.8rem; color: #aaa; font-weight: 500; }

  .image-upload-area {
    display: flex;
    align-items: center;
    justify-content: center;
    min-height: 160px;
    border: 1px dashed #333;
    border-radius: 10px;
    color: #666;
    font-size: 0.85rem;
    cursor: pointer;
    transition: border-color 0.2s;
    overflow: hidden;
  }
  .image-upload-area:hover { border-color: #8b5cf6; }
  .image-preview { max-width: 100%; max-height: 280px; display: block; }

  select, textarea {
    background: #141414;
    color: #e0e0e0;
    border: 1px solid #2a2a2a;
    border-radius: 8px;
    padding: 8px 12px;
    font-size: 0.85rem;
    font-family: inherit;
    outline: none;
    transition: border-color 0.2s;
  }
  select:hover, select:focus, textarea:focus { border-color: #8b5cf6; }
  textarea { resize: vertical; line-height: 1.5; }
  textarea::placeholder { color: #555; }

  button {
    background: #8b5cf6;
    color: #fff;
    border: none;
    border-radius: 8px;
    padding: 10px 20px;
    font-size: 0.85rem;
    font-weight: 500;
    cursor: pointer;
    transition: background 0.2s, opacity 0.2s;
  }
  button:hover { background: #7c3aed; }
  button:disabled { opacity: 0.5; cursor: not-allowed; }

  .result-area { display: flex; flex-direction: column; gap: 14px; align-items: center; }
  .result-image { max-width: 100%; border-radius: 8px; }

  .status-message { font-size: 0.85rem; line-height: 1.5; text-align: center; }
  .success-message { color: #4ade80; }
  .error-message { color: #fca5a5; }

  .secondary-buttons { display: flex; gap: 10px; }
  .secondary-buttons button {
    background: #232323;
    color: #ccc;
    border: 1px solid #333;
  }
  .secondary-buttons button:hover { background: #2e2e2e; color: #fff; }

  .spinner {
    width: 28px; height: 28px;
    border: 3px solid #333;
    border-top-color: #8b5cf6;
    border-radius: 50%;
    animation: spin 0.8s linear infinite;
  }
  @keyframes spin { to { transform: rotate(360deg); } }
</style>
</head>
<body>

<div class="app-container">
  <header>
    <h1>AKKOR KARIKATUR 🎨</h1>
    <p>Turn your photo into a unique, playful AI artwork!</p>
  </header>

  <main>
    <div id="formCard" class="card form-card">
      <form id="form" class="form-container">
        <div class="form-group">
          <label for="imageUpload">1. Upload a face photo</label>
          <input type="file" id="imageUpload" accept=".jpg, .jpeg, .png" class="hidden" aria-label="Upload a face photo">
          <label for="imageUpload" id="uploadArea" class="image-upload-area" role="button" tabindex="0">
            Click or drop a photo here
          </label>
        </div>

        <div class="form-group">
          <label for="imageType">2. Choose a type</label>
          <select id="imageType"></select>
        </div>

        <div class="form-group">
          <label for="imageStyle">3. Choose a style</label>
          <select id="imageStyle"></select>
        </div>

        <div class="form-group">
          <label for="instructions">4. Extra instructions (optional)</label>
          <textarea id="instructions" rows="3"
            placeholder="e.g. add a flower garden background, make the face more cheerful..."></textarea>
        </div>

        <button type="submit" id="submitBtn" disabled>Generate Image 🎨</button>
      </form>
    </div>

    <div id="resultCard" class="card result-area hidden">
      <div id="spinner" class="spinner hidden" aria-label="Loading"></div>
      <p id="status" class="status-message hidden"></p>
      <img id="resultImage" class="result-image hidden" alt="AI caricature result">
      <div id="resultButtons" class="secondary-buttons hidden">
        <button id="downloadBtn" type="button">Download Image</button>
        <button id="changeStyleBtn" type="button">Change Style</button>
      </div>
    </div>
  </main>
</div>

<script>
  const formCard = document.getElementById('formCard');
  const form = document.getElementById('form');
  const fileInput = document.getElementById('imageUpload');
  const uploadArea = document.getElementById('uploadArea');
  const typeEl = document.getElementById('imageType');
  const styleEl = document.getElementById('imageStyle');
  const instructionsEl = document.getElementById('instructions');
  const submitBtn = document.getElementById('submitBtn');
  const resultCard = document.getElementById('resultCard');
  const spinner = document.getElementById('spinner');
  const statusEl = document.getElementById('status');
  const resultImage = document.getElementById('resultImage');
  const resultButtons = document.getElementById('resultButtons');

  // ── API call helper ──
  async function callApi(url, options) {
    const res = await fetch(url, options);
    let data = null;
    try { data = await res.json(); } catch (e) { /* non-JSON error page */ }
    return { ok: res.ok, status: res.status, data };
  }

  function fillSelect(el, values, selected) {
    el.innerHTML = '';
    values.forEach(v => {
      const opt = document.createElement('option');
      opt.value = v;
      opt.textContent = v;
      if (v === selected) opt.selected = true;
      el.appendChild(opt);
    });
  }

  let current = null;

  function render(state, loading) {
    if (!state) return;
    current = state;
    const isLoading = loading || state.is_loading;

    formCard.classList.toggle('hidden', !!state.result);

    if (state.preview_url) {
      uploadArea.innerHTML = '';
      const img = document.createElement('img');
      img.src = state.preview_url;
      img.alt = 'Photo preview';
      img.className = 'image-preview';
      uploadArea.appendChild(img);
    } else {
      uploadArea.textContent = 'Click or drop a photo here';
    }

    submitBtn.disabled = isLoading || !state.has_image;
    submitBtn.textContent = isLoading ? 'Generating...' : 'Generate Image 🎨';

    resultCard.classList.toggle('hidden', !(isLoading || state.status_message));
    spinner.classList.toggle('hidden', !isLoading);

    statusEl.classList.toggle('hidden', !state.status_message);
    statusEl.textContent = state.status_message || '';
    statusEl.className = 'status-message ' + (state.is_error ? 'error-message' : 'success-message')
      + (state.status_message ? '' : ' hidden');

    resultImage.classList.toggle('hidden', !state.result);
    resultButtons.classList.toggle('hidden', !state.result);
    if (state.result) resultImage.src = state.result;
    else resultImage.removeAttribute('src');
  }

  async function init() {
    const opts = await callApi('/api/options');
    const st = await callApi('/api/state');
    fillSelect(typeEl, opts.data.image_types, st.data.image_type);
    fillSelect(styleEl, opts.data.styles, st.data.style);
    fileInput.accept = opts.data.accept;
    instructionsEl.value = st.data.instructions || '';
    render(st.data);
  }

  fileInput.addEventListener('change', async () => {
    const file = fileInput.files[0];
    if (!file) return;
    const body = new FormData();
    body.append('image', file);
    const { data } = await callApi('/api/image', { method: 'POST', body });
    render(data);
  });

  form.addEventListener('submit', async e => {
    e.preventDefault();
    if (current && current.is_loading) return;
    if (current && current.has_image) {
      render({ ...current, status_message: '', is_error: false, result: null }, true);
    }
    const { data } = await callApi('/api/generate', {
      method: 'POST',
      headers: { 'Content-Type': 'application/json' },
      body: JSON.stringify({
        image_type: typeEl.value,
        style: styleEl.value,
        instructions: instructionsEl.value,
      }),
    });
    render(data);
  });

  document.getElementById('downloadBtn').addEventListener('click', () => {
    const link = document.createElement('a');
    link.href = '/api/download';
    document.body.appendChild(link);
    link.click();
    document.body.removeChild(link);
  });

  document.getElementById('changeStyleBtn').addEventListener('click', async () => {
    const { data } = await callApi('/api/change-style', { method: 'POST' });
    render(data);
  });

  init();
</script>
</body>
</html>
"""


def main():
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config.warn_if_unconfigured()
    app = create_app()
    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG, threaded=True)


if __name__ == "__main__":
    main()
