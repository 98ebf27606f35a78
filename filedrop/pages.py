UPLOAD_HTML = """<!DOCTYPE html>
<html>
<head><title>Upload File</title></head>
<body>
<h2>Upload a file</h2>
<input type="file" id="fileInput" />
<button id="submit">Upload</button>
<p><a href="/download.html">Uploaded files</a></p>
<script>
const SERVER_URL = '';
const fileInput = document.getElementById('fileInput');
const submitButton = document.getElementById('submit');
submitButton.addEventListener('click', async (e) => {
    e.preventDefault();
    const file = fileInput.files[0];
    if (!file) { alert("Select a file first!"); return; }
    const formData = new FormData();
    formData.append('file', file);
    try {
        const res = await fetch(`${SERVER_URL}/upload_file`, { method: 'POST', body: formData });
        const text = await res.text();
        alert(text);
    } catch (err) { console.error(err); alert("Upload failed!"); }
});
</script>
</body>
</html>"""

DOWNLOAD_HTML = """<!DOCTYPE html>
<html>
<head><title>Download Files</title></head>
<body>
<h2>Uploaded Files</h2>
<ul id="fileList"></ul>
<p><a href="/upload.html">Upload a file</a></p>
<script>
const SERVER_URL = '';
async function fetchFiles() {
    try {
        const res = await fetch(`${SERVER_URL}/files`);
        const files = await res.json();
        const list = document.getElementById('fileList');
        list.innerHTML = "";
        files.forEach(f => {
            const li = document.createElement('li');
            const a = document.createElement('a');
            a.href = `${SERVER_URL}/download/${encodeURIComponent(f)}`;
            a.textContent = f;
            a.download = f;
            li.appendChild(a);
            list.appendChild(li);
        });
    } catch(e){ console.error(e); }
}
window.onload = fetchFiles;
</script>
</body>
</html>"""
