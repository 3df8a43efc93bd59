# formulagen/page.py
# The single page served at "/". Rendering is driven entirely by the
# JSON snapshot returned from /api/*.

PAGE_HTML = """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>AI Google Sheets Formula Generator</title>
  <style>
    body { font-family: system-ui, sans-serif; max-width: 48rem; margin: 3rem auto; padding: 0 1rem; }
    textarea { width: 100%; min-height: 8rem; font: inherit; }
    button { margin-top: .75rem; padding: .6rem 1.2rem; font: inherit; }
    #error { color: #b91c1c; }
    #formula { font-family: monospace; background: #f3f4f6; padding: 1rem; border-radius: .5rem; }
    [hidden] { display: none; }
  </style>
</head>
<body>
  <h1>AI Google Sheets Formula Generator</h1>
  <p>Describe what you want to calculate and get a formula with an explanation.</p>

  <textarea id="description" placeholder="e.g. sum column A where column B equals 'yes'"></textarea>
  <button id="generate" disabled>Generate Formula</button>
  <p id="error" hidden></p>

  <section id="result" hidden>
    <h3>Formula <button id="copy">Copy</button></h3>
    <div id="formula"></div>
    <h3>Explanation</h3>
    <div id="explanation"></div>
  </section>

  <script>
    const $ = (id) => document.getElementById(id);
    let loading = false;

    function render(state) {
      loading = state.status === "loading";
      $("generate").textContent = loading ? "Generating Formula..." : "Generate Formula";
      $("generate").disabled = loading || !$("description").value.trim();
      $("error").hidden = !state.error;
      $("error").textContent = state.error || "";
      $("result").hidden = state.status !== "success";
      $("formula").textContent = state.formula || "";
      $("explanation").replaceChildren(...state.steps.map((line) => {
        const p = document.createElement("p");
        p.textContent = line;
        return p;
      }));
      $("copy").textContent = state.copied ? "Copied!" : "Copy";
    }

    async function call(path, body) {
      const resp = await fetch(path, {
        method: body === undefined ? "GET" : "POST",
        headers: {"Content-Type": "application/json"},
        body: body === undefined ? undefined : JSON.stringify(body),
      });
      const data = await resp.json();
      return {ok: resp.ok, data: data};
    }

    $("description").addEventListener("input", () => {
      $("generate").disabled = loading || !$("description").value.trim();
    });

    $("generate").addEventListener("click", async () => {
      const description = $("description").value;
      if (loading || !description.trim()) return;
      render({status: "loading", steps: [], copied: false});
      const {data} = await call("/api/formula", {description: description});
      render(data.detail && data.detail.state ? data.detail.state : data);
    });

    $("copy").addEventListener("click", async () => {
      const formula = $("formula").textContent;
      if (!formula) return;
      try {
        await navigator.clipboard.writeText(formula);
      } catch (err) {
        $("error").hidden = false;
        $("error").textContent = "Could not copy to the clipboard: " + err.message;
        return;
      }
      const {ok, data} = await call("/api/copy", {});
      if (!ok) return;
      render(data.state);
      setTimeout(async () => render((await call("/api/state")).data), data.reset_after_ms);
    });

    window.addEventListener("pagehide", () => navigator.sendBeacon("/api/session/close"));
    call("/api/state").then(({data}) => render(data));
  </script>
</body>
</html>
"""
