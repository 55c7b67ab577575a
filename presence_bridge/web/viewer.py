"""HTML template for the live viewer page."""

VIEWER_HTML = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Presence Bridge - Live View</title>
    <script src="https://cdn.tailwindcss.com"></script>
    <style>
        body { background-color: #0f0f1a; }
        .card { background-color: #1a1a2e; border: 1px solid #2f2f4a; }
        .feed { position: relative; display: inline-block; }
        .feed img { display: block; width: 640px; image-rendering: pixelated; }
        .box { position: absolute; border: 2px solid #00d4aa; }
        .box span { position: absolute; top: -1.4rem; left: -2px; background: #00d4aa;
                    color: #0f0f1a; font-size: 0.75rem; padding: 0 4px; white-space: nowrap; }
    </style>
</head>
<body class="text-white min-h-screen p-6">
    <div class="flex justify-between items-center mb-6">
        <h1 id="project" class="text-3xl font-bold">Connecting...</h1>
        <span id="timing" class="text-gray-400"></span>
    </div>

    <div class="grid grid-cols-1 lg:grid-cols-3 gap-6">
        <div class="card rounded-xl p-4 lg:col-span-2">
            <div id="feed" class="feed">
                <img id="frame" alt="Waiting for camera...">
            </div>
        </div>

        <div class="card rounded-xl">
            <div class="p-4 border-b border-gray-700">
                <h2 class="text-xl font-semibold">Recorded Detections</h2>
            </div>
            <ul id="detections" class="p-4 space-y-2 max-h-96 overflow-y-auto text-sm"></ul>
        </div>
    </div>

    <script>
        const feed = document.getElementById('feed');
        const frame = document.getElementById('frame');

        function drawBoxes(boxes) {
            feed.querySelectorAll('.box').forEach(el => el.remove());
            for (const b of boxes) {
                const el = document.createElement('div');
                el.className = 'box';
                el.style.left = (b.x * 100) + '%';
                el.style.top = (b.y * 100) + '%';
                el.style.width = (b.width * 100) + '%';
                el.style.height = (b.height * 100) + '%';
                const tag = document.createElement('span');
                tag.textContent = b.label + ' (' + b.value.toFixed(2) + ')';
                el.appendChild(tag);
                feed.appendChild(el);
            }
        }

        async function loadDetections() {
            const res = await fetch('/api/v1/detections?limit=20');
            if (!res.ok) return;
            const body = await res.json();
            const list = document.getElementById('detections');
            list.innerHTML = '';
            for (const d of body.detections) {
                const li = document.createElement('li');
                li.textContent = new Date(d.created_at).toLocaleString() + ' - ' + d.action;
                list.appendChild(li);
            }
        }

        const source = new EventSource('/api/v1/sse/viewer');
        source.addEventListener('hello', e => {
            document.getElementById('project').textContent = JSON.parse(e.data).projectName;
        });
        source.addEventListener('image', e => {
            frame.src = JSON.parse(e.data).img;
        });
        source.addEventListener('classification', e => {
            const data = JSON.parse(e.data);
            drawBoxes(data.result.bounding_boxes || []);
            document.getElementById('timing').textContent = data.timeMs + ' ms';
        });

        loadDetections();
        setInterval(loadDetections, 5000);
    </script>
</body>
</html>
"""
